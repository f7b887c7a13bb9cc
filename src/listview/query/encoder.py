"""Serialize a ViewState into list endpoint query parameters."""

from typing import Dict
from urllib.parse import urlencode

from .view_state import ViewState

# Parameter names understood by the list endpoint (json-server dialect).
LIMIT_PARAM = "_limit"
PAGE_PARAM = "_page"
SEARCH_PARAM = "q"
FILTER_PARAM = "title_like"
SORT_PARAM = "_sort"
ORDER_PARAM = "_order"


def encode_query(state: ViewState) -> Dict[str, str]:
    """
    Map a ViewState to the endpoint's query parameters.

    The endpoint pages from 1. Empty search/filter text is sent as an empty
    value rather than dropped; the server reads empty as "no constraint".
    Sort keys appear only when the sort specification is non-empty.

    Args:
        state: ViewState to encode

    Returns:
        Ordered dict of parameter name -> string value
    """
    params: Dict[str, str] = {
        LIMIT_PARAM: str(state.page_size),
        PAGE_PARAM: str(state.page_index + 1),
        SEARCH_PARAM: state.search_text,
        FILTER_PARAM: state.filter_text,
    }
    if state.sort_spec:
        params[SORT_PARAM] = ",".join(entry.column_id for entry in state.sort_spec)
        params[ORDER_PARAM] = ",".join(
            "desc" if entry.descending else "asc" for entry in state.sort_spec
        )
    return params


def encode_query_string(state: ViewState) -> str:
    """Canonical URL-encoded form of encode_query (stable key order)."""
    return urlencode(encode_query(state))
