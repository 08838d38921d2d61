"""
JSON / GraphQL classification of HAR entries.

Content types are matched by substring so that parameters
(``; charset=utf-8``) and vendor types (``application/vnd.api+json``)
still count as JSON.
"""

from typing import Dict, List, Optional

from .models import HAREntry
from .parser import strict_loads


JSON_MARKER = 'json'
GRAPHQL_KEYS = ('operationName', 'query')


# ============================================================================
# FILTER FUNCTIONS
# ============================================================================

def find_header(headers, name: str) -> Optional[str]:
    """
    Return the value of the first header matching name, ignoring case.

    Args:
        headers: List of HARHeader
        name: Header name to look for

    Returns:
        Header value, or None if no header matches
    """
    wanted = name.lower()
    for header in headers:
        if header.name.lower() == wanted:
            return header.value
    return None


def request_content_type(entry: HAREntry) -> str:
    """postData MIME type, falling back to the Content-Type header."""
    post_data = entry.request.post_data
    mime_type = post_data.mime_type if post_data else ''
    return mime_type or find_header(entry.request.headers, 'content-type') or ''


def is_json_request(entry: HAREntry) -> bool:
    """
    Check if the request body is declared as JSON.

    Examples:
        'application/json; charset=utf-8' → True
        'application/ld+json' → True
        'text/html' → False
    """
    return JSON_MARKER in request_content_type(entry)


def is_json_response(entry: HAREntry) -> bool:
    """Check if the response body is declared as JSON."""
    mime_type = entry.response.content.mime_type or ''
    return JSON_MARKER in mime_type


def is_graphql_request(entry: HAREntry) -> bool:
    """
    Check if the request is a GraphQL operation.

    Only JSON requests whose body is an object with a truthy
    ``operationName`` or ``query`` qualify.

    Args:
        entry: HAR entry

    Returns:
        True if this is a GraphQL request
    """
    if not is_json_request(entry):
        return False

    post_data = entry.request.post_data
    text = post_data.text if post_data else None
    if not text:
        return False

    try:
        parsed = strict_loads(text)
    except (ValueError, RecursionError):
        return False

    if not isinstance(parsed, dict):
        return False
    return any(parsed.get(key) for key in GRAPHQL_KEYS)


def filter_json_entries(entries: List[HAREntry]) -> List[HAREntry]:
    """
    Keep JSON requests/responses that have a recorded response body.

    An empty response text still counts as recorded; only a missing
    one excludes the entry. Order is preserved.

    Args:
        entries: HAR entries

    Returns:
        Filtered entries
    """
    return [
        entry for entry in entries
        if (is_json_request(entry) or is_json_response(entry))
        and entry.response.content.text is not None
    ]


def filter_stats(entries: List[HAREntry], kept: List[HAREntry]) -> Dict[str, int]:
    """
    Summarize a filtering pass.

    Returns:
        Dict with original_count, filtered_count, removed and graphql counts
    """
    return {
        'original_count': len(entries),
        'filtered_count': len(kept),
        'removed': len(entries) - len(kept),
        'graphql': sum(1 for entry in kept if is_graphql_request(entry)),
    }
