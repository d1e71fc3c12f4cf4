"""
Voice / Text Command Parser

Turns a free-text Spanish utterance (speech-to-text output or typed) into
at most one mutation intent. Rules are tried in a fixed order and the first
match wins, so an utterance that could read as both "mark unavailable" and
"adjust price" is resolved by rule precedence:

    1. status report       "estado del menú"
    2. mark unavailable    "agotar lomo saltado"
    3. mark available      "habilitar causa", "causa disponible"
    4. category discount   "baja 10% a los fondos"
    5. category increase   "sube 5 soles a las bebidas"
    6. category decrease   "baja 3 a los postres"
    7. set price by name   "cambia causa a 20"

Unrecognized utterances produce nothing and never raise.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from carta.menu.intents import (
    AdjustPriceByCategory,
    DiscountByCategory,
    MutationIntent,
    SetPriceByName,
    ToggleAvailability,
)
from carta.menu.items import MenuItem

logger = logging.getLogger(__name__)

_ARTICLE = r"(?:la\s+|el\s+|las\s+|los\s+)?"
_NUMBER = r"(\d+(?:[.,]\d+)?)"

_STATUS_RE = re.compile(r"(?:status|estado|reporte)(?:\s+del?)?\s+men[uú]", re.IGNORECASE)

_MARK_UNAVAILABLE_RE = re.compile(
    r"(?:agotar|agota|marcar? (?:como )?agotado?|sin disponibilidad)\s+(.+)",
    re.IGNORECASE,
)

_MARK_AVAILABLE_RE = re.compile(
    r"(?:habilitar?|activar?|disponible?|pon(?:er)?.*disponible)\s+(.+)"
    r"|(.+?)\s+(?:está\s+)?disponible",
    re.IGNORECASE,
)

_DISCOUNT_RE = re.compile(
    r"(?:baja|descuenta|reduce|aplica descuento)(?:.*?de)?\s+"
    + _NUMBER
    + r"\s*%\s+(?:a|en|para|de)\s+"
    + _ARTICLE
    + r"(.+)",
    re.IGNORECASE,
)

_INCREASE_RE = re.compile(
    r"(?:sube|aumenta|incrementa)(?:.*?precio)?\s+"
    + _NUMBER
    + r"(?:\s*(?:soles|bs|s/))?\s+(?:a|en|para)\s+"
    + _ARTICLE
    + r"(.+)",
    re.IGNORECASE,
)

_DECREASE_RE = re.compile(
    r"(?:baja|disminuye|reduce|descuenta)(?:.*?precio)?\s+"
    + _NUMBER
    + r"(?:\s*(?:soles|bs|s/))?\s+(?:a|en|para|de)\s+"
    + _ARTICLE
    + r"(.+)",
    re.IGNORECASE,
)

_SET_PRICE_RE = re.compile(
    r"(?:cambia|pon|ajusta|fija|establece)(?:.*?precio\s+de|.*?costo\s+de|\s+de|\s+el)?\s+"
    r"(.+?)\s+(?:a|en|por)\s+(?:s/\.?\s*)?"
    + _NUMBER,
    re.IGNORECASE,
)


def _fragment(raw: Optional[str]) -> str:
    """Trim whitespace and trailing punctuation added by speech engines."""
    return (raw or "").strip().rstrip(".!?¡¿,;").strip()


def _number(raw: str) -> float:
    return float(raw.replace(",", "."))


class CommandParser:
    """Ordered regex rules mapping utterances to intents."""

    def is_status_query(self, utterance: str) -> bool:
        return bool(_STATUS_RE.search((utterance or "").lower()))

    def parse(self, utterance: str) -> Optional[MutationIntent]:
        """
        Parse one utterance.

        Args:
            utterance: Raw text from speech recognition or a keyboard

        Returns:
            The mutation intent, or None for status queries, empty
            fragments and anything unrecognized
        """
        command = (utterance or "").lower()

        if _STATUS_RE.search(command):
            return None

        match = _MARK_UNAVAILABLE_RE.search(command)
        if match:
            name = _fragment(match.group(1))
            return ToggleAvailability(name=name) if name else None

        match = _MARK_AVAILABLE_RE.search(command)
        if match:
            name = _fragment(match.group(1) or match.group(2))
            if name:
                return ToggleAvailability(name=name)

        match = _DISCOUNT_RE.search(command)
        if match:
            category = _fragment(match.group(2))
            if category:
                return DiscountByCategory(category=category, percent=_number(match.group(1)))

        match = _INCREASE_RE.search(command)
        if match:
            category = _fragment(match.group(2))
            if category:
                return AdjustPriceByCategory(category=category, delta=_number(match.group(1)))

        match = _DECREASE_RE.search(command)
        if match:
            category = _fragment(match.group(2))
            if category:
                return AdjustPriceByCategory(category=category, delta=-_number(match.group(1)))

        match = _SET_PRICE_RE.search(command)
        if match:
            name = _fragment(match.group(1))
            if name:
                return SetPriceByName(name=name, price=_number(match.group(2)))

        return None


def build_status_report(items: Sequence[MenuItem]) -> str:
    """Spoken summary of sold-out versus available dishes."""
    sold_out = [item for item in items if not item.available]
    available = [item for item in items if item.available]

    if not sold_out:
        return f"Todo en orden. Los {len(available)} platos del menú están disponibles."

    plural = "s" if len(sold_out) > 1 else ""
    names = ", ".join(item.name for item in sold_out)
    return (
        f"Atención. Hay {len(sold_out)} plato{plural} agotado{plural}: {names}. "
        f"{len(available)} platos disponibles."
    )


class OutcomeKind(str, Enum):
    INTENT = "intent"
    REPORT = "report"
    IGNORED = "ignored"


@dataclass
class CommandOutcome:
    """What an utterance turned into."""
    kind: OutcomeKind
    utterance: str
    intent: Optional[MutationIntent] = None
    message: Optional[str] = None


class CommandInterpreter:
    """
    Runs utterances against a menu store.

    Status queries are answered through the notifier, intents are
    dispatched to the store, everything else is dropped.
    """

    def __init__(self, store, notifier, parser: Optional[CommandParser] = None):
        self.store = store
        self.notifier = notifier
        self.parser = parser or CommandParser()

    def execute(self, utterance: str) -> CommandOutcome:
        logger.info(f"Processing command: {utterance!r}")

        if self.parser.is_status_query(utterance):
            message = build_status_report(self.store.items)
            self.notifier.announce(message)
            return CommandOutcome(OutcomeKind.REPORT, utterance, message=message)

        intent = self.parser.parse(utterance)
        if intent is None:
            logger.debug(f"Command not recognized, ignoring: {utterance!r}")
            return CommandOutcome(OutcomeKind.IGNORED, utterance)

        self.store.dispatch(intent)
        return CommandOutcome(OutcomeKind.INTENT, utterance, intent=intent)
