"""
Exception hierarchy for autobdd.

Generation-time errors abort the whole run. Execution-time errors abort only
the current scenario step and always carry the originating step name.
"""

from __future__ import annotations

from collections.abc import Sequence


class AutoBDDError(Exception):
    """Base class for every error raised by autobdd."""

    def __init__(self, message: str, step_name: str | None = None) -> None:
        self.step_name = step_name
        if step_name:
            message = f"{message} (step: {step_name})"
        super().__init__(message)


class InstructionError(AutoBDDError):
    """Raised when an instruction set is malformed or internally inconsistent."""

    pass


class GenerationError(AutoBDDError):
    """Raised when a generation run must be aborted."""

    pass


class TransportError(AutoBDDError):
    """Raised when a DOM or AI collaborator cannot be reached."""

    def __init__(self, message: str, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class UnknownPageError(AutoBDDError):
    """Raised when a page name is not present in the page registry."""

    def __init__(self, page_name: str, known_pages: Sequence[str] = (), step_name: str | None = None) -> None:
        self.page_name = page_name
        self.known_pages = list(known_pages)
        known = ", ".join(self.known_pages) or "none"
        super().__init__(f"Unknown page: {page_name!r} (known pages: {known})", step_name)


class NoActivePageError(AutoBDDError):
    """Raised when the current page is requested before one was set."""

    def __init__(self, step_name: str | None = None) -> None:
        super().__init__("No active page: set_current_page() has not been called", step_name)


class SelectorResolutionError(AutoBDDError):
    """Raised when every original and regenerated selector candidate failed."""

    def __init__(
        self,
        element_name: str,
        attempted_selectors: Sequence[str],
        step_name: str | None = None,
    ) -> None:
        self.element_name = element_name
        self.attempted_selectors = list(attempted_selectors)
        tried = "\n".join(f"  - {s}" for s in self.attempted_selectors) or "  (no candidates)"
        super().__init__(
            f"Could not resolve element {element_name!r}; selectors attempted:\n{tried}",
            step_name,
        )


class ActionError(AutoBDDError):
    """Raised when the driver fails on a resolved element."""

    def __init__(
        self,
        action: str,
        selector: str,
        cause: Exception,
        step_name: str | None = None,
    ) -> None:
        self.action = action
        self.selector = selector
        super().__init__(f"{action} failed on {selector!r}: {cause}", step_name)
