"""
Shareable Links

The customer view is reached through a link (printed as a QR code on the
table) carrying `view=customer` and optionally the table number as `mesa`.
`table` is accepted as an alias. Anything else opens the staff dashboard.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional
from urllib.parse import urlencode, urlsplit, urlunsplit


class View(str, Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"


TABLE_PARAMS = ("mesa", "table")


@dataclass(frozen=True)
class ViewSelection:
    view: View
    table_number: Optional[str] = None


def build_share_link(base_url: str, table_number: Optional[str] = None) -> str:
    """Customer menu URL, pre-filled with the table number when given."""
    params = {"view": View.CUSTOMER.value}
    if table_number is not None and str(table_number).strip():
        params["mesa"] = str(table_number).strip()

    scheme, netloc, path, _, _ = urlsplit(base_url)
    return urlunsplit((scheme, netloc, path or "/", urlencode(params), ""))


def resolve_view(params: Mapping[str, str]) -> ViewSelection:
    """Pick the view and table number from query parameters."""
    view = View.CUSTOMER if params.get("view") == View.CUSTOMER.value else View.ADMIN

    table_number = None
    for name in TABLE_PARAMS:
        value = (params.get(name) or "").strip()
        if value:
            table_number = value
            break

    return ViewSelection(view=view, table_number=table_number)
