"""
Tests for the Spanish command parser and interpreter.
"""

import pytest

from carta.menu import (
    AdjustPriceByCategory,
    CommandInterpreter,
    CommandParser,
    DiscountByCategory,
    SetPriceByName,
    ToggleAvailability,
    build_status_report,
    default_menu,
)
from carta.menu.commands import OutcomeKind
from carta.services.notifications import NotificationChannel


@pytest.fixture
def parser():
    return CommandParser()


class TestCommandParser:

    def test_mark_unavailable(self, parser):
        assert parser.parse("agotar Lomo Saltado") == ToggleAvailability(name="lomo saltado")

    def test_category_discount(self, parser):
        intent = parser.parse("baja 10% a los Fondos")
        assert intent == DiscountByCategory(category="fondos", percent=10)

    def test_set_price_by_name(self, parser):
        assert parser.parse("cambia Causa a 20") == SetPriceByName(name="causa", price=20)

    def test_unrelated_utterance(self, parser):
        assert parser.parse("qué tal el clima") is None

    @pytest.mark.parametrize(
        "utterance, expected",
        [
            ("marcar como agotado ceviche", ToggleAvailability(name="ceviche")),
            ("sin disponibilidad chicha morada", ToggleAvailability(name="chicha morada")),
            ("habilitar causa", ToggleAvailability(name="causa")),
            ("causa está disponible", ToggleAvailability(name="causa")),
            ("sube 5 soles a las bebidas", AdjustPriceByCategory(category="bebidas", delta=5)),
            ("baja 3 a los postres", AdjustPriceByCategory(category="postres", delta=-3)),
            ("aplica descuento de 15% a entradas", DiscountByCategory(category="entradas", percent=15)),
            ("pon el precio de lomo saltado en 50", SetPriceByName(name="lomo saltado", price=50)),
            ("fija chicha morada a 12,50", SetPriceByName(name="chicha morada", price=12.5)),
        ],
    )
    def test_rule_table(self, parser, utterance, expected):
        assert parser.parse(utterance) == expected

    def test_trailing_punctuation_is_trimmed(self, parser):
        assert parser.parse("agotar lomo saltado.") == ToggleAvailability(name="lomo saltado")

    def test_empty_fragment_is_rejected(self, parser):
        """An empty name would match every item, so nothing is produced."""
        assert parser.parse("agotar  ?") is None

    def test_status_query_produces_no_intent(self, parser):
        assert parser.parse("Estado del menú") is None
        assert parser.is_status_query("dame el reporte del menu")

    def test_unavailable_wins_over_price_rules(self, parser):
        """Rule order: 'agotar' is checked before any price rule."""
        assert isinstance(parser.parse("agotar lomo a 20"), ToggleAvailability)

    @pytest.mark.parametrize("utterance", ["", "   ", "hola", "20%", "cambia a"])
    def test_never_raises(self, parser, utterance):
        assert parser.parse(utterance) is None


class TestStatusReport:

    def test_all_available(self):
        assert build_status_report(default_menu()) == (
            "Todo en orden. Los 6 platos del menú están disponibles."
        )

    def test_lists_sold_out_items(self):
        from dataclasses import replace

        menu = tuple(replace(item, available=item.id != 2) for item in default_menu())
        report = build_status_report(menu)
        assert report.startswith("Atención. Hay 1 plato agotado: Lomo Saltado.")
        assert "5 platos disponibles" in report


class TestCommandInterpreter:

    def test_intent_is_dispatched(self, store, notifier):
        interpreter = CommandInterpreter(store, notifier)
        outcome = interpreter.execute("agotar Lomo Saltado")

        assert outcome.kind == OutcomeKind.INTENT
        assert store.get(2).available is False

    def test_status_query_is_announced(self, store, notifier):
        interpreter = CommandInterpreter(store, notifier)
        outcome = interpreter.execute("estado del menú")

        assert outcome.kind == OutcomeKind.REPORT
        last = notifier.recent(1)[0]
        assert last.channel == NotificationChannel.VOICE
        assert last.title == outcome.message

    def test_unrecognized_is_ignored(self, store, notifier):
        interpreter = CommandInterpreter(store, notifier)
        before = store.items
        outcome = interpreter.execute("qué tal el clima")

        assert outcome.kind == OutcomeKind.IGNORED
        assert store.items == before
        assert store.version == 0

    def test_article_in_fragment_resolves_no_dish(self, store, notifier):
        interpreter = CommandInterpreter(store, notifier)
        before = store.items
        outcome = interpreter.execute("marcar como agotado el ceviche")

        # "el ceviche" is not a substring of "ceviche clasico" nor the reverse
        assert outcome.intent == ToggleAvailability(name="el ceviche")
        assert store.items == before

    def test_marked_sold_out_by_partial_name(self, store, notifier):
        interpreter = CommandInterpreter(store, notifier)
        interpreter.execute("marcar como agotado ceviche")

        assert store.get(1).available is False
