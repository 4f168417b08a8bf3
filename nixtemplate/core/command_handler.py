"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), opens the cache
store for the run, renders the template with helpers bound to that store
and persists the store once rendering has finished.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

# Domain Layer Imports
from nixtemplate.domain.interfaces.cache import Store
from nixtemplate.domain.interfaces.user_interface import UserInterface
from nixtemplate.domain.models.common import RenderedOutput, TemplateSource

# Infrastructure Layer Imports
from nixtemplate.infrastructure.cache.file_store import PersistentFileStore
from nixtemplate.infrastructure.cache.global_store import (
    delete_global_store,
    has_global_store,
    set_global_store,
)
from nixtemplate.infrastructure.cache.memory_store import InMemoryStore
from nixtemplate.infrastructure.rendering.template_renderer import (
    HelperRegistry,
    TemplateRenderer,
    default_helpers,
)

logger = logging.getLogger(__name__)

HelpersFactory = Callable[[Optional[Store]], HelperRegistry]

def parse_variables(assignments: Iterable[str]) -> Dict[str, str]:
    """Parses ``KEY=VALUE`` strings into a template context.

    Raises:
        ValueError: If an assignment has no '=' or an empty key.
    """
    variables: Dict[str, str] = {}
    for assignment in assignments:
        key, sep, value = assignment.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ValueError(f"Invalid variable '{assignment}', expected KEY=VALUE")
        variables[key] = value
    return variables

def default_lock_file(template: Optional[Path]) -> Optional[Path]:
    """Returns the lock file that sits next to a template file."""
    if template is None:
        return None
    return template.with_name(template.name + ".lock")

class CommandHandler:
    """Handles incoming commands."""

    def __init__(
        self,
        ui: UserInterface,
        helpers_factory: HelpersFactory = default_helpers,
    ):
        """Initializes the CommandHandler.

        Args:
            ui: Where output and messages are displayed.
            helpers_factory: Builds the helper registry bound to a store.
        """
        self.ui = ui
        self.helpers_factory = helpers_factory

    def open_store(self, lock_file: Optional[Path], update: bool = False) -> Store:
        """Opens the store for one run.

        Without a lock file an in-memory store is used and nothing is persisted.
        """
        if lock_file is None:
            logger.info("No lock file configured, using an in-memory cache.")
            return InMemoryStore()
        return PersistentFileStore.open(lock_file, load=not update)

    def handle_render(
        self,
        source: TemplateSource,
        variables: Optional[Dict[str, str]] = None,
        lock_file: Optional[Path] = None,
        update: bool = False,
        output: Optional[Path] = None,
    ) -> RenderedOutput:
        """Renders a template, persisting the cache if rendering succeeded.

        When rendering fails the lock file is left as it was.

        Args:
            source: The template text.
            variables: Template context variables.
            lock_file: Cache file to load and persist; None for no cache file.
            update: Ignore the lock file's current contents.
            output: File to write the result to; stdout if None.

        Returns:
            The rendered output.
        """
        store = self.open_store(lock_file, update=update)
        if has_global_store():
            self.ui.display_warning("A cache store from another render is still active; replacing it.")
        # helpers get the store explicitly; the global handle serves call
        # sites that cannot be handed one and must be cleared before persist
        set_global_store(store.share() if isinstance(store, PersistentFileStore) else store)
        try:
            renderer = TemplateRenderer(self.helpers_factory(store))
            rendered = renderer.render(source, variables or {})
        except BaseException:
            delete_global_store()
            if isinstance(store, PersistentFileStore):
                store.release()
            raise
        delete_global_store()

        if isinstance(store, PersistentFileStore):
            store.persist()

        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(rendered, encoding="utf-8")
            logger.info(f"Wrote rendered template to {output}")
            self.ui.display_info(f"Wrote {output}")
        else:
            self.ui.display_output(rendered, newline=not rendered.endswith("\n"))
        return rendered

    def handle_functions(self) -> List[Tuple[str, str]]:
        """Displays the helper functions templates can call."""
        functions = self.helpers_factory(None).functions()
        self.ui.display_functions(functions)
        return functions
