"""
In-memory browser router.

Keeps a push/replace history with back/forward and notifies subscribers of
every navigation, including the ones the subscriber caused itself.
"""

import enum
from typing import Callable

import structlog

from parrot.core.navigation.state import ObservedUrl, parse_query

logger = structlog.get_logger()

RouteListener = Callable[[ObservedUrl], None]


class NavigationAction(str, enum.Enum):
    """How a URL change lands in history."""
    PUSH = "push"        # New history entry
    REPLACE = "replace"  # Overwrite current entry


class InMemoryRouter:
    """History stack with a cursor, plus synchronous listeners."""

    def __init__(self, base_path: str = "/dashboard", initial_query: str = ""):
        self.base_path = base_path
        initial = f"{base_path}?{initial_query.lstrip('?')}" if initial_query else base_path
        self._history: list[str] = [initial]
        self._index = 0
        self._listeners: list[RouteListener] = []
        self.push_count = 0
        self.replace_count = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def location(self) -> str:
        return self._history[self._index]

    @property
    def query(self) -> ObservedUrl:
        return parse_query(self.location)

    @property
    def history(self) -> list[str]:
        return list(self._history)

    @property
    def index(self) -> int:
        return self._index

    def can_go_back(self) -> bool:
        return self._index > 0

    def can_go_forward(self) -> bool:
        return self._index < len(self._history) - 1

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, listener: RouteListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: RouteListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self) -> None:
        observed = self.query
        for listener in list(self._listeners):
            listener(observed)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def navigate(self, url: str, action: NavigationAction) -> None:
        if action is NavigationAction.PUSH:
            self.push(url)
        else:
            self.replace(url)

    def push(self, url: str) -> None:
        """Add a history entry, dropping any forward entries."""
        del self._history[self._index + 1:]
        self._history.append(url)
        self._index += 1
        self.push_count += 1
        logger.debug("router_push", url=url, depth=len(self._history))
        self._emit()

    def replace(self, url: str) -> None:
        """Overwrite the current history entry."""
        self._history[self._index] = url
        self.replace_count += 1
        logger.debug("router_replace", url=url)
        self._emit()

    def back(self) -> bool:
        if not self.can_go_back():
            return False
        self._index -= 1
        self._emit()
        return True

    def forward(self) -> bool:
        if not self.can_go_forward():
            return False
        self._index += 1
        self._emit()
        return True

    def go_to(self, url: str) -> None:
        """Simulate an externally typed URL or deep link (a push)."""
        self.push(url)
