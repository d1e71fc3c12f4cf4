"""
Menu Reducer

Pure state transition: (menu, intent) -> new menu. No I/O and no mutation
of the input; every call returns a new tuple. Unknown intents return the
menu unchanged.

Name and category lookups use the fuzzy matcher and apply to every
matching item, not just the first.
"""

from __future__ import annotations

import time
from dataclasses import replace
from typing import Any, Callable, Sequence

from carta.menu.defaults import default_menu
from carta.menu.intents import (
    AddItem,
    AdjustPriceByCategory,
    DiscountByCategory,
    ReplaceAll,
    ResetToDefaults,
    SetPrice,
    SetPriceByName,
    ToggleAvailability,
)
from carta.menu.items import PLACEHOLDER_IMAGE, MenuItem, clamp_price
from carta.menu.matching import matches

Menu = tuple[MenuItem, ...]


def _by_name(menu: Sequence[MenuItem], fragment: str, change: Callable[[MenuItem], MenuItem]) -> Menu:
    return tuple(change(item) if matches(item.name, fragment) else item for item in menu)


def _by_category(menu: Sequence[MenuItem], fragment: str, change: Callable[[MenuItem], MenuItem]) -> Menu:
    return tuple(change(item) if matches(item.category.value, fragment) else item for item in menu)


def next_item_id(menu: Sequence[MenuItem]) -> int:
    """
    Millisecond clock id, bumped past the largest id in use.

    Keeps ids monotonic and unique even when two items are added within
    the same millisecond.
    """
    now_ms = time.time_ns() // 1_000_000
    highest = max((item.id for item in menu), default=0)
    return max(now_ms, highest + 1)


def _set_price(menu: Sequence[MenuItem], intent: SetPrice) -> Menu:
    price = clamp_price(intent.price)
    return tuple(replace(item, price=price) if item.id == intent.item_id else item for item in menu)


def _set_price_by_name(menu: Sequence[MenuItem], intent: SetPriceByName) -> Menu:
    price = clamp_price(intent.price)
    return _by_name(menu, intent.name, lambda item: replace(item, price=price))


def _adjust_price(menu: Sequence[MenuItem], intent: AdjustPriceByCategory) -> Menu:
    return _by_category(
        menu,
        intent.category,
        lambda item: replace(item, price=clamp_price(item.price + intent.delta)),
    )


def _discount(menu: Sequence[MenuItem], intent: DiscountByCategory) -> Menu:
    factor = 1 - intent.percent / 100
    return _by_category(
        menu,
        intent.category,
        lambda item: replace(item, price=clamp_price(round(item.price * factor, 2))),
    )


def _toggle(menu: Sequence[MenuItem], intent: ToggleAvailability) -> Menu:
    return _by_name(menu, intent.name, lambda item: replace(item, available=not item.available))


def _reset(menu: Sequence[MenuItem], intent: ResetToDefaults) -> Menu:
    return default_menu()


def _replace_all(menu: Sequence[MenuItem], intent: ReplaceAll) -> Menu:
    return tuple(intent.items)


def _add_item(menu: Sequence[MenuItem], intent: AddItem) -> Menu:
    item = MenuItem(
        id=next_item_id(menu),
        name=intent.name,
        category=intent.category,
        price=clamp_price(intent.price),
        description=intent.description,
        image=intent.image or PLACEHOLDER_IMAGE,
        available=True if intent.available is None else intent.available,
    )
    return (*menu, item)


_HANDLERS: dict[type, Callable[[Sequence[MenuItem], Any], Menu]] = {
    SetPrice: _set_price,
    SetPriceByName: _set_price_by_name,
    AdjustPriceByCategory: _adjust_price,
    DiscountByCategory: _discount,
    ToggleAvailability: _toggle,
    ResetToDefaults: _reset,
    ReplaceAll: _replace_all,
    AddItem: _add_item,
}


def reduce(menu: Sequence[MenuItem], intent: Any) -> Menu:
    """Apply one intent to a menu snapshot and return the next snapshot."""
    handler = _HANDLERS.get(type(intent))
    if handler is None:
        return tuple(menu)
    return handler(menu, intent)
