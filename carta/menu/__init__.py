"""
Menu domain: items, seed data, fuzzy matching, command parsing,
the reducer and the store that owns the live menu.
"""

from carta.menu.items import CURRENCY, PLACEHOLDER_IMAGE, Category, MenuItem
from carta.menu.defaults import DEFAULT_MENU, default_menu
from carta.menu.intents import (
    AddItem,
    AdjustPriceByCategory,
    DiscountByCategory,
    MutationIntent,
    ReplaceAll,
    ResetToDefaults,
    SetPrice,
    SetPriceByName,
    ToggleAvailability,
)
from carta.menu.matching import first_match, matches
from carta.menu.reducer import reduce
from carta.menu.store import MenuStore
from carta.menu.commands import CommandInterpreter, CommandParser, build_status_report

__all__ = [
    "CURRENCY",
    "PLACEHOLDER_IMAGE",
    "Category",
    "MenuItem",
    "DEFAULT_MENU",
    "default_menu",
    "AddItem",
    "AdjustPriceByCategory",
    "DiscountByCategory",
    "MutationIntent",
    "ReplaceAll",
    "ResetToDefaults",
    "SetPrice",
    "SetPriceByName",
    "ToggleAvailability",
    "first_match",
    "matches",
    "reduce",
    "MenuStore",
    "CommandInterpreter",
    "CommandParser",
    "build_status_report",
]
