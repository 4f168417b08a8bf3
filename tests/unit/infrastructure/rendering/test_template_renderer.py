import pytest

from nixtemplate.domain.errors import HelperError, TemplateRenderError
from nixtemplate.infrastructure.cache.global_store import set_global_store
from nixtemplate.infrastructure.cache.memory_store import InMemoryStore
from nixtemplate.infrastructure.helpers import git
from nixtemplate.infrastructure.rendering.template_renderer import (
    HelperRegistry,
    TemplateRenderer,
    default_helpers,
)


def test_must_resolve_from_cache(failing_helpers):
    store = InMemoryStore({
        ("f", "1", "foo"): "1foo",
        ("f", "2", "bar"): "2bar",
    })
    renderer = TemplateRenderer(failing_helpers.registry(store))
    assert renderer.render("{{ f(1, 'foo') }} {{ f(2, 'bar') }}") == "1foo 2bar"

def test_unbound_registry_uses_global_store(failing_helpers):
    set_global_store(InMemoryStore({("g",): "g"}))
    renderer = TemplateRenderer(failing_helpers.registry(None))
    assert renderer.render("{{ g() }}") == "g"

def test_uncached_helper_always_runs():
    calls = []

    def now():
        """Returns a counter."""
        calls.append(1)
        return str(len(calls))

    registry = HelperRegistry(store=InMemoryStore())
    registry.register(now)
    renderer = TemplateRenderer(registry)
    assert renderer.render("{{ now() }}{{ now() }}") == "12"

def test_context_variables_and_trailing_newline():
    renderer = TemplateRenderer(HelperRegistry())
    assert renderer.render("version = \"{{ v }}\";\n", {"v": "1.2"}) == "version = \"1.2\";\n"

def test_syntax_error_is_wrapped():
    renderer = TemplateRenderer(HelperRegistry())
    with pytest.raises(TemplateRenderError, match="line 1"):
        renderer.render("{{ unclosed")

def test_helper_error_propagates_unchanged():
    def broken():
        raise HelperError("no such rev")

    registry = HelperRegistry(store=InMemoryStore())
    registry.register(broken, cached=True)
    with pytest.raises(HelperError, match="no such rev"):
        TemplateRenderer(registry).render("{{ broken() }}")

def test_default_helpers_registry():
    registry = default_helpers(InMemoryStore())
    assert [signature for signature, _ in registry.functions()] == [
        "commit_of_git(url, rev)",
        "commit_of_github(owner, repo, rev)",
        "hash_from_git(url, rev)",
        "hash_from_github(owner, repo, rev)",
    ]
    assert dict(registry.functions())["commit_of_git(url, rev)"] == "Returns the commit hash of given git url and rev."
    cached = {h.name for h in registry.helpers() if h.cached}
    assert cached == {"commit_of_git", "hash_from_git"}

def test_github_helpers_go_through_git_cache(mocker):
    commit = mocker.patch.object(git, "commit_of_git", autospec=True, return_value="abc123")
    store = InMemoryStore()
    registry = default_helpers(store)
    renderer = TemplateRenderer(registry)

    out = renderer.render("{{ commit_of_github('NixOS', 'nixpkgs', 'master') }} {{ commit_of_git('https://github.com/NixOS/nixpkgs.git', 'master') }}")

    assert out == "abc123 abc123"
    commit.assert_called_once_with("https://github.com/NixOS/nixpkgs.git", "master")
    assert store.snapshot() == {
        ("commit_of_git", "https://github.com/NixOS/nixpkgs.git", "master"): "abc123",
    }
