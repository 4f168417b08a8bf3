"""Interface for interacting with the user.

Defines the contract for displaying rendered output, errors, warnings and
informational messages, allowing different UI implementations.
"""

import abc
from typing import Any, List, Tuple

from nixtemplate.domain.models.common import RenderedOutput

class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_output(self, output: RenderedOutput, **kwargs: Any) -> None:
        """Writes rendered output for the user (stdout).

        Args:
            output: The rendered template.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user.

        Args:
            error_message: The error message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user.

        Args:
            warning_message: The warning message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user.

        Args:
            info_message: The informational message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    def display_functions(self, functions: List[Tuple[str, str]]) -> None:
        """Displays the available template functions.

        Args:
            functions: (signature, doc) pairs.
        """
        pass
