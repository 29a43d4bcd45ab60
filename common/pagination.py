"""
common.pagination
~~~~~~~~~~~~~~~~~
``page`` / ``limit`` query-parameter handling shared by the list views.

Unparsable or out-of-range values never fail the request: a bad ``page``
becomes 1 and a bad ``limit`` becomes the endpoint's default.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    def envelope(self, total: int) -> dict:
        """The ``pagination`` block returned alongside list results."""
        return {"page": self.page, "limit": self.limit, "total": total}


def _as_int(raw) -> int | None:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def parse_page_request(query_params, *, default_limit: int, max_limit: int) -> PageRequest:
    """
    Read ``page`` and ``limit`` from *query_params*.

    Args:
        query_params: A ``QueryDict`` or any mapping with ``.get``.
        default_limit: Used when ``limit`` is missing, not an integer,
            below 1 or above *max_limit*.
        max_limit: Largest accepted ``limit``.
    """
    page = _as_int(query_params.get("page"))
    if page is None or page < 1:
        page = 1

    limit = _as_int(query_params.get("limit"))
    if limit is None or limit < 1 or limit > max_limit:
        limit = default_limit

    return PageRequest(page=page, limit=limit)
