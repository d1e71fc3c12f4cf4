"""
Menu Store

Single owner of the live menu. Dispatch runs in two stages:

    1. the pure reducer computes the next menu synchronously
    2. every registered observer is told (intent, previous, current)

Observers (spoken feedback, remote sync) return nothing to the store, and
an observer that raises is logged without affecting the store or the
remaining observers. The store is built explicitly at startup and handed
to whoever needs it.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from carta.menu.defaults import default_menu
from carta.menu.intents import MutationIntent
from carta.menu.items import MenuItem
from carta.menu.reducer import Menu, reduce

logger = logging.getLogger(__name__)

Observer = Callable[[MutationIntent, Menu, Menu], None]


class MenuStore:
    """Holds the menu and applies intents to it."""

    def __init__(self, initial: Optional[Iterable[MenuItem]] = None):
        self._items: Menu = tuple(initial) if initial is not None else default_menu()
        self._observers: list[Observer] = []
        self.version = 0

    @property
    def items(self) -> Menu:
        """Current immutable snapshot."""
        return self._items

    def get(self, item_id: int) -> Optional[MenuItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register an observer; returns a function that removes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def dispatch(self, intent: MutationIntent) -> Menu:
        previous = self._items
        self._items = reduce(previous, intent)
        self.version += 1
        logger.debug(f"Dispatched {type(intent).__name__} (version {self.version})")

        for observer in list(self._observers):
            try:
                observer(intent, previous, self._items)
            except Exception as e:
                logger.exception(f"Menu observer failed for {type(intent).__name__}: {e}")

        return self._items
