"""Spoken confirmations resolved from the dispatched intent."""

from __future__ import annotations

from typing import Optional

from carta.menu.intents import (
    AddItem,
    AdjustPriceByCategory,
    DiscountByCategory,
    MutationIntent,
    ResetToDefaults,
    SetPrice,
    SetPriceByName,
    ToggleAvailability,
)
from carta.menu.reducer import Menu


def _amount(value: float) -> str:
    # "20" rather than "20.0" when read aloud
    return f"{value:g}"


def confirmation_for(intent: MutationIntent) -> Optional[str]:
    """Message read back to staff after a mutation, if any."""
    if isinstance(intent, AddItem):
        return f"Plato {intent.name} añadido correctamente"
    if isinstance(intent, SetPrice):
        return f"Precio actualizado a {_amount(intent.price)} soles"
    if isinstance(intent, SetPriceByName):
        return f"Precio de {intent.name} actualizado a {_amount(intent.price)} soles"
    if isinstance(intent, AdjustPriceByCategory):
        return f"Precios de {intent.category} ajustados"
    if isinstance(intent, DiscountByCategory):
        return f"Descuento del {_amount(intent.percent)} por ciento aplicado a {intent.category}"
    if isinstance(intent, ToggleAvailability):
        return f"Entendido, {intent.name} marcado. Disponibilidad actualizada."
    if isinstance(intent, ResetToDefaults):
        return "Menú restablecido a los valores originales"
    return None


class SpokenFeedback:
    """Store observer that announces a confirmation for each mutation."""

    def __init__(self, notifier):
        self.notifier = notifier

    def __call__(self, intent: MutationIntent, previous: Menu, current: Menu) -> None:
        message = confirmation_for(intent)
        if message:
            self.notifier.announce(message)
