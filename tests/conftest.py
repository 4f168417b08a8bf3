import pytest
from pathlib import Path
from typing import List, Optional
from typer.testing import CliRunner

from nixtemplate.domain.interfaces.cache import Store
from nixtemplate.infrastructure.cache.global_store import delete_global_store
from nixtemplate.infrastructure.cli.progress import delete_global_progress
from nixtemplate.infrastructure.config.settings import clear_test_config
from nixtemplate.infrastructure.rendering.template_renderer import HelperRegistry


class CallRecorder:
    """Test helpers that record every real (uncached) call."""

    def __init__(self):
        self.calls: List[tuple] = []

    def f(self, a, b) -> str:
        """Concatenates its arguments."""
        self.calls.append(("f", a, b))
        return f"{a}{b}"

    def g(self) -> str:
        """Returns 'g'."""
        self.calls.append(("g",))
        return "g"

    def registry(self, store: Optional[Store]) -> HelperRegistry:
        registry = HelperRegistry(store=store)

        def f(a, b):
            """Concatenates its arguments."""
            return self.f(a, b)

        def g():
            """Returns 'g'."""
            return self.g()

        registry.register(f, cached=True)
        registry.register(g, cached=True)
        return registry


class FailingHelpers:
    """Helpers that must never run: every value has to come from the cache."""

    def registry(self, store: Optional[Store]) -> HelperRegistry:
        registry = HelperRegistry(store=store)

        def f(a, b):
            raise AssertionError(f"f({a!r}, {b!r}) should have been served from the cache")

        def g():
            raise AssertionError("g() should have been served from the cache")

        registry.register(f, cached=True)
        registry.register(g, cached=True)
        return registry


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()

@pytest.fixture(autouse=True)
def clean_global_state():
    """Makes sure no global store, spinner or test config leaks between tests."""
    delete_global_store()
    yield
    delete_global_store()
    delete_global_progress()
    clear_test_config()

@pytest.fixture
def lock_path(tmp_path: Path) -> Path:
    """Path of a lock file that does not exist yet."""
    return tmp_path / "template.nix.lock"

@pytest.fixture
def recorder() -> CallRecorder:
    return CallRecorder()

@pytest.fixture
def failing_helpers() -> FailingHelpers:
    return FailingHelpers()
