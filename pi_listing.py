"""Tabbed listing of PIs.

Payment status decides the tab before the EXPIRED status does: an expired PI
that received money shows under PAID or PARTIAL, and only unpaid expired PIs
land in EXPIRED.
"""

from datetime import datetime
from typing import List, Optional

from finance import as_amount, total_due

TAB_ALL = "all"
TAB_PAID = "paid"
TAB_PARTIAL = "partial"
TAB_UNPAID = "unpaid"
TAB_EXPIRED = "expired"
TABS = (TAB_ALL, TAB_PAID, TAB_PARTIAL, TAB_UNPAID, TAB_EXPIRED)

SORT_FIELDS = ("issue_date", "total_amount", "performa_invoice_number")


def _is_unpaid(pi: dict) -> bool:
    return not pi.get("payment_status") or pi.get("payment_status") == "UNPAID"


def in_tab(pi: dict, tab: str, dispatched_filter: Optional[str] = None) -> bool:
    if tab == TAB_PAID:
        if pi.get("payment_status") != "PAID":
            return False
        if dispatched_filter == "dispatched":
            return pi.get("dispatched") is True
        if dispatched_filter == "undispatched":
            return not pi.get("dispatched")
        return True
    if tab == TAB_PARTIAL:
        return pi.get("payment_status") == "PARTIAL"
    if tab == TAB_UNPAID:
        return _is_unpaid(pi) and pi.get("status") != "EXPIRED"
    if tab == TAB_EXPIRED:
        return pi.get("status") == "EXPIRED" and _is_unpaid(pi)
    return True


def matches_search(pi: dict, search: str) -> bool:
    needle = search.lower()
    return any(
        needle in str(pi.get(field) or "").lower()
        for field in ("performa_invoice_number", "customer_name", "quotation_id")
    )


def filter_pis(
    pis: List[dict],
    tab: str = TAB_ALL,
    search: Optional[str] = None,
    status: Optional[str] = None,
    dispatched_filter: Optional[str] = None,
) -> List[dict]:
    filtered = pis
    if search:
        filtered = [pi for pi in filtered if matches_search(pi, search)]
    if status and status != "all":
        filtered = [pi for pi in filtered if pi.get("status") == status]
    return [pi for pi in filtered if in_tab(pi, tab, dispatched_filter)]


def tab_counts(pis: List[dict]) -> dict:
    return {tab: sum(1 for pi in pis if in_tab(pi, tab)) for tab in TABS}


def statistics(pis: List[dict]) -> dict:
    by_status = {}
    for pi in pis:
        by_status[pi.get("status")] = by_status.get(pi.get("status"), 0) + 1
    return {
        "total": len(pis),
        "approved": by_status.get("APPROVED", 0),
        "pending": by_status.get("PENDING", 0),
        "rejected": by_status.get("REJECTED", 0),
        "expired": by_status.get("EXPIRED", 0),
        "total_value": sum(as_amount(pi.get("total_amount")) for pi in pis),
        "total_paid": sum(as_amount(pi.get("payment_received")) for pi in pis),
        "total_due": total_due(pis),
    }


def _issue_date(pi):
    value = pi.get("issue_date")
    if not value:
        return datetime.min
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        # Unparseable dates sort like undated PIs
        return datetime.min


def _sort_key(field: str):
    if field == "issue_date":
        return _issue_date
    if field == "total_amount":
        return lambda pi: as_amount(pi.get("total_amount"))
    return lambda pi: pi.get(field) or ""


def sort_pis(pis: List[dict], sort_by: str = "issue_date", sort_order: str = "desc") -> List[dict]:
    if sort_by not in SORT_FIELDS:
        raise ValueError(f"Cannot sort by {sort_by}")
    return sorted(pis, key=_sort_key(sort_by), reverse=sort_order != "asc")


def paginate(pis: List[dict], page: int = 0, rows_per_page: int = 10) -> List[dict]:
    start = page * rows_per_page
    return pis[start:start + rows_per_page]
