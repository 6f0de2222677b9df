"""Interface for interacting with the user (input/output).

Defines the contract for displaying information, errors, warnings,
progress and summaries, allowing different UI implementations
(e.g., console, GUI).
"""

import abc
from typing import Any, Sequence

from ..models.common import BulkResult, FetchProgress, RemoveProgress
from ..models.contact import ContactRecord


class UserInterface(abc.ABC):
    """Abstract Base Class for user interaction."""

    @abc.abstractmethod
    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message to the user.

        Args:
            info_message: The informational message string.
            **kwargs: Additional arguments for formatting.
        """
        pass

    @abc.abstractmethod
    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message to the user."""
        pass

    @abc.abstractmethod
    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message to the user."""
        pass

    @abc.abstractmethod
    def confirm(self, prompt_message: str) -> bool:
        """Asks the user a yes/no question synchronously."""
        pass

    def display_contacts(self, records: Sequence[ContactRecord], limit: int = 20) -> None:
        """Displays a preview of contacts.

        Args:
            records: Contacts to show.
            limit: Maximum number of rows.
        """
        pass

    def start_fetch_progress(self) -> None:
        """Shows an indeterminate progress indicator for a fetch."""
        pass

    def update_fetch_progress(self, progress: FetchProgress) -> None:
        """Updates the fetch indicator. A zero total means 'unknown'."""
        pass

    def start_removal_progress(self, total: int) -> None:
        """Shows a progress indicator for a bulk removal of `total` items."""
        pass

    def update_removal_progress(self, progress: RemoveProgress) -> None:
        """Updates the removal indicator with one progress event."""
        pass

    def stop_progress(self) -> None:
        """Removes any active progress indicator."""
        pass

    def display_bulk_summary(self, result: BulkResult) -> None:
        """Displays the outcome of a bulk removal run."""
        pass
