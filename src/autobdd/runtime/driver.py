"""
Browser driver interface consumed by the runtime.

Any automation backend can be adapted to this protocol. Driver lifecycle
(launch, navigation, shutdown) stays with the caller.
"""

from __future__ import annotations

from typing import Any, Protocol


class Driver(Protocol):
    """Async element-level operations on a live page."""

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> Any | None:
        """Return a handle for ``selector`` or None if it did not appear in time."""
        ...

    async def page_source(self) -> str:
        """Current DOM of the page as HTML."""
        ...

    async def click(self, handle: Any) -> None: ...

    async def set_value(self, handle: Any, value: str) -> None: ...

    async def get_text(self, handle: Any) -> str: ...

    async def is_displayed(self, handle: Any) -> bool: ...
