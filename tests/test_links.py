"""
Tests for shareable customer links and view selection.
"""

from carta.links import View, build_share_link, resolve_view


class TestShareLink:

    def test_customer_link_with_table(self):
        assert build_share_link("https://carta.example.com/menu", "12") == (
            "https://carta.example.com/menu?view=customer&mesa=12"
        )

    def test_customer_link_without_table(self):
        assert build_share_link("https://carta.example.com") == "https://carta.example.com/?view=customer"

    def test_blank_table_is_omitted(self):
        assert "mesa" not in build_share_link("http://localhost:8001/menu", "  ")


class TestResolveView:

    def test_default_is_admin(self):
        selection = resolve_view({})
        assert selection.view == View.ADMIN
        assert selection.table_number is None

    def test_customer_with_mesa(self):
        selection = resolve_view({"view": "customer", "mesa": "5"})
        assert selection.view == View.CUSTOMER
        assert selection.table_number == "5"

    def test_table_alias(self):
        assert resolve_view({"table": "9"}).table_number == "9"

    def test_mesa_wins_over_table(self):
        assert resolve_view({"mesa": "1", "table": "2"}).table_number == "1"

    def test_unknown_view_opens_admin(self):
        assert resolve_view({"view": "kitchen"}).view == View.ADMIN
