"""The single error surface of a view, plus its success line."""

from __future__ import annotations


class Notice:
    """Latest error and latest success message for one view.

    A new error replaces the previous one rather than stacking.  The
    error stays until dismissed or until the next successful operation.
    """

    def __init__(self) -> None:
        self.error: str = ""
        self.success: str = ""

    def fail(self, message: str) -> None:
        self.error = message
        self.success = ""

    def succeed(self, message: str = "") -> None:
        self.error = ""
        self.success = message

    def dismiss(self) -> None:
        self.error = ""
