"""Jinja2 based template rendering with registered helper functions.

Helpers are plain Python callables exposed to templates as globals. Cached
helpers are wrapped with the memoization protocol and bound to an explicit
Store when the registry is built.
"""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import jinja2

from nixtemplate.core.memoization import memoize
from nixtemplate.domain.errors import TemplateRenderError
from nixtemplate.domain.interfaces.cache import Store
from nixtemplate.domain.models.common import RenderedOutput, TemplateSource
from nixtemplate.infrastructure.helpers import git

logger = logging.getLogger(__name__)

@dataclass
class HelperFunction:
    """A function callable from templates."""
    name: str
    signature: str
    doc: str
    func: Callable[..., str]
    cached: bool = False

def _describe(name: str, func: Callable[..., Any]) -> Tuple[str, str]:
    params = ", ".join(inspect.signature(func).parameters)
    doc = inspect.getdoc(func) or ""
    return f"{name}({params})", doc.splitlines()[0] if doc else ""

class HelperRegistry:
    """Ordered collection of template helpers."""

    def __init__(self, store: Optional[Store] = None, coalesce: bool = False):
        """Initializes an empty registry.

        Args:
            store: Store cached helpers are bound to. If None they resolve the
                global store on every call.
            coalesce: Share one computation among concurrent misses on a key.
        """
        self.store = store
        self.coalesce = coalesce
        self._helpers: Dict[str, HelperFunction] = {}

    def register(
        self,
        func: Callable[..., str],
        name: Optional[str] = None,
        cached: bool = False,
        cache_name: Optional[str] = None,
    ) -> Callable[..., str]:
        """Adds a helper and returns the callable exposed to templates."""
        name = name or func.__name__
        signature, doc = _describe(name, func)
        exposed = func
        if cached:
            exposed = memoize(func, cache_name=cache_name or name, store=self.store, coalesce=self.coalesce)
        self._helpers[name] = HelperFunction(name, signature, doc, exposed, cached)
        logger.debug(f"Registered helper {signature} (cached={cached})")
        return exposed

    def __getitem__(self, name: str) -> Callable[..., str]:
        return self._helpers[name].func

    def __contains__(self, name: str) -> bool:
        return name in self._helpers

    def helpers(self) -> List[HelperFunction]:
        return list(self._helpers.values())

    def functions(self) -> List[Tuple[str, str]]:
        """Returns (signature, doc) for every helper, in registration order."""
        return [(h.signature, h.doc) for h in self._helpers.values()]

    def as_globals(self) -> Dict[str, Callable[..., str]]:
        return {h.name: h.func for h in self._helpers.values()}


def default_helpers(store: Optional[Store] = None, coalesce: bool = False) -> HelperRegistry:
    """Builds the registry of the git/nix helpers available to templates."""
    registry = HelperRegistry(store=store, coalesce=coalesce)

    cached_commit = registry.register(git.commit_of_git, cached=True)

    def commit_of_github(owner: str, repo: str, rev: str) -> str:
        """Returns the commit hash of given repo and rev."""
        return cached_commit(git.github_url(owner, repo), rev)

    registry.register(commit_of_github)

    cached_hash = registry.register(git.hash_from_git, cached=True)

    def hash_from_github(owner: str, repo: str, rev: str) -> str:
        """Returns the sha256 hash of given repo and rev."""
        return cached_hash(git.github_url(owner, repo), rev)

    registry.register(hash_from_github)
    return registry


class TemplateRenderer:
    """Renders template text with the helpers of a registry."""

    def __init__(self, helpers: HelperRegistry):
        self.helpers = helpers
        self._env = jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self._env.globals.update(helpers.as_globals())

    def render(self, source: TemplateSource, context: Optional[Mapping[str, Any]] = None) -> RenderedOutput:
        """Renders ``source`` with ``context`` as template variables.

        Exceptions raised by helpers propagate unchanged.

        Raises:
            TemplateRenderError: If the template is invalid or uses an
                undefined variable.
        """
        try:
            template = self._env.from_string(source)
            return RenderedOutput(template.render(**dict(context or {})))
        except jinja2.TemplateSyntaxError as e:
            raise TemplateRenderError(f"Template syntax error on line {e.lineno}: {e.message}") from e
        except jinja2.TemplateError as e:
            raise TemplateRenderError(f"Template rendering failed: {e}") from e
