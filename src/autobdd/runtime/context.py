"""
Per-scenario page cursor.
"""

from __future__ import annotations

import structlog

from autobdd.errors import NoActivePageError, UnknownPageError
from autobdd.models import PageObject, PageRegistry

logger = structlog.get_logger(__name__)


class PageContextManager:
    """
    Tracks which page a scenario is currently on.

    One instance per scenario execution; create it with
    ``PageRegistry.new_context()``. There is no navigation history.
    """

    def __init__(self, registry: PageRegistry) -> None:
        self._registry = registry
        self._current: PageObject | None = None
        self._log = logger.bind(component="page_context")

    @property
    def current_page_name(self) -> str | None:
        return self._current.name if self._current is not None else None

    @property
    def page_names(self) -> list[str]:
        return self._registry.names

    def set_current_page(self, name: str, step_name: str | None = None) -> PageObject:
        """
        Move the cursor to ``name``.

        Raises:
            UnknownPageError: If ``name`` is not registered; the cursor is unchanged
        """
        page = self.get_page(name, step_name=step_name)
        if self._current is None or self._current.name != page.name:
            self._log.debug("Switched page", previous=self.current_page_name, current=page.name)
        self._current = page
        return page

    def get_current_page(self, step_name: str | None = None) -> PageObject:
        """
        Return the current page.

        Raises:
            NoActivePageError: If no page has been set yet
        """
        if self._current is None:
            raise NoActivePageError(step_name=step_name)
        return self._current

    def get_page(self, name: str, step_name: str | None = None) -> PageObject:
        """Look a page up without moving the cursor."""
        page = self._registry.get(name)
        if page is None:
            raise UnknownPageError(name, self._registry.names, step_name=step_name)
        return page

    def reset(self) -> None:
        self._current = None
