"""Git and nix computations used by templates.

Every function here runs external commands in a throwaway directory and is
expensive (network access, full checkouts). They are NOT cached on their
own; the template renderer wraps them with the memoization protocol.
"""

import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import List, Optional

from nixtemplate.domain.errors import HelperError
from nixtemplate.infrastructure.cli.progress import EMOJI_FETCH, EMOJI_HASH, report_progress
from nixtemplate.infrastructure.config.settings import get_git_executable, get_nix_executable

logger = logging.getLogger(__name__)

def github_url(owner: str, repo: str) -> str:
    """Returns the https clone url of a GitHub repository."""
    return f"https://github.com/{owner}/{repo}.git"

def _run(args: List[str], cwd: Path, capture: bool = False) -> str:
    """Runs a command quietly and returns its stripped stdout.

    Raises:
        HelperError: If the executable is missing or exits non-zero.
    """
    logger.debug(f"Running {args} in {cwd}")
    try:
        result = subprocess.run(
            args,
            cwd=str(cwd),
            stdout=subprocess.PIPE if capture else subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        raise HelperError(f"Executable not found: {args[0]}") from e

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        logger.debug(f"Command {args} failed with code {result.returncode}: {stderr}")
        raise HelperError(f"Command '{' '.join(args)}' failed ({result.returncode}): {stderr}")
    return (result.stdout or "").strip() if capture else ""

def _init_remote(git: str, workdir: Path, url: str) -> None:
    _run([git, "init"], workdir)
    _run([git, "remote", "add", "origin", url], workdir)

def parse_ls_remote(output: str) -> Optional[str]:
    """Extracts the commit hash from the first line of ``git ls-remote`` output."""
    lines = output.splitlines()
    if not lines:
        return None
    commit = lines[0].split("\t", 1)[0].strip()
    return commit or None

def commit_of_git(url: str, rev: str) -> str:
    """Returns the commit hash of given git url and rev."""
    report_progress(f"{EMOJI_FETCH}Fetching commit of {url}#{rev}")
    git = get_git_executable()
    with tempfile.TemporaryDirectory(prefix="nix-template-") as tmp:
        workdir = Path(tmp)
        _init_remote(git, workdir, url)
        remotes = _run([git, "ls-remote", "origin", rev], workdir, capture=True)

    commit = parse_ls_remote(remotes)
    if commit is None:
        raise HelperError(f"Could not find commit for rev {rev} in {url}")
    return commit

def hash_from_git(url: str, rev: str) -> str:
    """Returns the sha256 hash of given git url and rev."""
    report_progress(f"{EMOJI_HASH}Calculating nix hash for {url}#{rev}")
    git = get_git_executable()
    nix = get_nix_executable()
    with tempfile.TemporaryDirectory(prefix="nix-template-") as tmp:
        workdir = Path(tmp)
        _init_remote(git, workdir, url)
        _run([git, "fetch", "--depth", "1", "origin", rev], workdir)
        _run([git, "checkout", "FETCH_HEAD"], workdir)
        shutil.rmtree(workdir / ".git")
        return _run(
            [nix, "hash", "path", "--type", "sha256", "--base64", str(workdir)],
            workdir,
            capture=True,
        )
