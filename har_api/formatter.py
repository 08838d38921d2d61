"""
Normalization of HAR entries and report rendering.

Entries that survived classification are mapped to NormalizedRecord
objects, then serialized into one of three report layouts (see
OutputMode). Rendering is a pure function of the records.
"""

import json
import logging
import math
import re
from typing import Any, Callable, Dict, List, Optional, Union

from .config import ExtractorConfig
from .models import BodyKind, DecodedBody, HAREntry, NormalizedRecord, OutputMode
from .parser import strict_loads

logger = logging.getLogger(__name__)

OPERATION_HEADER_RE = re.compile(r'^(query|mutation|subscription)\s+\w+\s*(\([^)]*\))?\s*\{')
RULE_WIDTH = 80


# ============================================================================
# NORMALIZATION
# ============================================================================

def decode_body(text: Optional[str]) -> DecodedBody:
    """
    Best-effort JSON decode of a request/response body.

    Never raises: text that isn't JSON comes back unchanged as RAW.

    Args:
        text: Body text from the HAR entry (may be None)

    Returns:
        DecodedBody tagged PARSED, RAW or ABSENT
    """
    if not text:
        return DecodedBody.absent()

    try:
        return DecodedBody.parsed(strict_loads(text))
    except (ValueError, RecursionError) as e:
        logger.debug(f"Body is not JSON, keeping raw text: {e}")
        return DecodedBody.raw(text)


def round_half_up(value: float) -> int:
    """150.4 → 150, 150.5 → 151"""
    return int(math.floor(value + 0.5))


def is_graphql_body(body: DecodedBody) -> bool:
    return bool(body.get('operationName') or body.get('query'))


def operation_name(body: DecodedBody) -> Optional[str]:
    name = body.get('operationName')
    return name if isinstance(name, str) else None


def to_record(entry: HAREntry, index: int) -> NormalizedRecord:
    """
    Flatten a HAR entry into a NormalizedRecord.

    Args:
        entry: HAR entry that passed filtering
        index: 0-based position in the filtered list

    Returns:
        NormalizedRecord with a 1-based index
    """
    post_data = entry.request.post_data
    request_body = decode_body(post_data.text if post_data else None)
    response_body = decode_body(entry.response.content.text)

    return NormalizedRecord(
        index=index + 1,
        timestamp=entry.started_date_time,
        duration=round_half_up(entry.time),
        method=entry.request.method,
        url=entry.request.url,
        status=entry.response.status,
        request_body=request_body,
        response_body=response_body,
        is_graphql=is_graphql_body(request_body),
        operation_name=operation_name(request_body),
    )


def to_records(entries: List[HAREntry]) -> List[NormalizedRecord]:
    return [to_record(entry, index) for index, entry in enumerate(entries)]


# ============================================================================
# BODY HELPERS
# ============================================================================

def pretty_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def render_body(body: DecodedBody) -> str:
    """Pretty-print decoded structures; raw text is shown as recorded."""
    if body.kind is BodyKind.RAW:
        return body.value
    return pretty_json(body.value)


def truncate(text: str, limit: int) -> str:
    """Cut text to limit characters plus a visible marker."""
    if len(text) > limit:
        return text[:limit] + ExtractorConfig.TRUNCATION_MARKER
    return text


def graphql_query(record: NormalizedRecord) -> Optional[str]:
    """Query text for GraphQL records that carry one."""
    if not record.is_graphql:
        return None
    query = record.request_body.get('query')
    if not query:
        return None
    return query if isinstance(query, str) else pretty_json(query)


def graphql_variables(record: NormalizedRecord) -> Optional[dict]:
    variables = record.request_body.get('variables')
    if isinstance(variables, dict) and variables:
        return variables
    return None


def summary_counts(records: List[NormalizedRecord]) -> Dict[str, int]:
    graphql = sum(1 for record in records if record.is_graphql)
    return {
        'total': len(records),
        'graphql': graphql,
        'rest': len(records) - graphql,
    }


def fence(body: DecodedBody) -> str:
    return "```json" if body.kind is BodyKind.PARSED else "```"


# ============================================================================
# RENDERERS
# ============================================================================

def render_tagged(records: List[NormalizedRecord], response_limit: int) -> str:
    """XML-like tags, one <request> element per record."""
    counts = summary_counts(records)
    sections = [
        f'<api_requests total="{counts["total"]}" graphql="{counts["graphql"]}" rest="{counts["rest"]}">'
    ]

    for record in records:
        type_tag = 'graphql' if record.is_graphql else 'rest'
        sections.append(f'\n<request index="{record.index}" type="{type_tag}">')
        sections.append(f'  <url method="{record.method}">{record.url}</url>')
        sections.append(f'  <status code="{record.status}" duration="{record.duration}ms"/>')

        if record.is_graphql and record.operation_name:
            sections.append(f'  <operation>{record.operation_name}</operation>')

        query = graphql_query(record)
        if query:
            sections.append('  <graphql_query>')
            sections.append(query)
            sections.append('  </graphql_query>')

            variables = graphql_variables(record)
            if variables:
                sections.append('  <variables>')
                sections.append(pretty_json(variables))
                sections.append('  </variables>')
        elif record.request_body.present:
            sections.append('  <request_body>')
            sections.append(render_body(record.request_body))
            sections.append('  </request_body>')

        if record.response_body.present:
            sections.append('  <response>')
            sections.append(truncate(render_body(record.response_body), response_limit))
            sections.append('  </response>')

        sections.append('</request>')

    sections.append('\n</api_requests>')
    return '\n'.join(sections)


def render_markdown(records: List[NormalizedRecord], response_limit: int) -> str:
    """Heading-based Markdown report."""
    counts = summary_counts(records)
    sections = [
        "# HAR File Analysis - API Requests Summary",
        f"Total API Requests: {counts['total']}",
        f"GraphQL Requests: {counts['graphql']}",
        f"REST/JSON Requests: {counts['rest']}",
        "\n" + "=" * RULE_WIDTH + "\n",
    ]

    for record in records:
        lines = []
        type_tag = "[GraphQL]" if record.is_graphql else "[REST/JSON]"
        lines.append(f"## Request #{record.index} {type_tag}")
        lines.append(f"**URL:** {record.method} {record.url}")
        lines.append(f"**Status:** {record.status}")
        lines.append(f"**Duration:** {record.duration}ms")
        lines.append(f"**Timestamp:** {record.timestamp}")

        if record.is_graphql and record.operation_name:
            lines.append(f"**Operation:** {record.operation_name}")

        query = graphql_query(record)
        if query:
            lines.append("\n### GraphQL Query:")
            lines.append("```graphql")
            lines.append(query)
            lines.append("```")

            variables = graphql_variables(record)
            if variables:
                lines.append("\n### Variables:")
                lines.append("```json")
                lines.append(pretty_json(variables))
                lines.append("```")
        elif record.request_body.present:
            lines.append("\n### Request Body:")
            lines.append(fence(record.request_body))
            lines.append(render_body(record.request_body))
            lines.append("```")

        if record.response_body.present:
            lines.append("\n### Response Body:")
            lines.append(fence(record.response_body))
            lines.append(truncate(render_body(record.response_body), response_limit))
            lines.append("```")

        sections.append("\n".join(lines))
        sections.append("\n" + "-" * RULE_WIDTH + "\n")

    return "\n".join(sections)


def compact_query(query: str) -> str:
    """Drop the 'query Name(...) {' header and keep the selection start."""
    return OPERATION_HEADER_RE.sub('{', query, count=1).strip()[:ExtractorConfig.COMPACT_QUERY_CHARS]


def compact_response(body: DecodedBody) -> str:
    if body.kind is BodyKind.RAW:
        text = body.value
    else:
        text = json.dumps(body.value, ensure_ascii=False, separators=(',', ':'))
    return text[:ExtractorConfig.COMPACT_RESPONSE_CHARS]


def render_compact(records: List[NormalizedRecord], response_limit: int) -> str:
    """One line per request plus short query/response previews."""
    counts = summary_counts(records)
    sections = [
        "# API Requests Overview",
        f"{counts['total']} total requests ({counts['graphql']} GraphQL, {counts['rest']} REST)\n",
    ]

    for record in records:
        if record.is_graphql:
            prefix = f"[GraphQL: {record.operation_name or 'unknown'}]"
        else:
            prefix = "[REST]"
        sections.append(f"{prefix} {record.method} {record.url} -> {record.status} ({record.duration}ms)")

        query = graphql_query(record)
        if query:
            sections.append(f"  Query: {compact_query(query)}...")

        data = record.response_body.get('data')
        if isinstance(data, dict):
            sections.append(f"  Response keys: {', '.join(data.keys())}")
        elif record.response_body.present:
            sections.append(f"  Response: {compact_response(record.response_body)}...")

        sections.append("")

    return "\n".join(sections)


RENDERERS: Dict[OutputMode, Callable[[List[NormalizedRecord], int], str]] = {
    OutputMode.TAGGED: render_tagged,
    OutputMode.MARKDOWN: render_markdown,
    OutputMode.COMPACT: render_compact,
}


def render(
    records: List[NormalizedRecord],
    mode: Union[OutputMode, str] = OutputMode.TAGGED,
    response_limit: int = ExtractorConfig.RESPONSE_PREVIEW_CHARS,
) -> str:
    """
    Serialize records into a report.

    Args:
        records: Normalized records, in report order
        mode: Report layout
        response_limit: Max characters of each rendered response body

    Returns:
        Report text (byte-identical for identical records)

    Raises:
        ValueError: If mode is not a known OutputMode
    """
    return RENDERERS[OutputMode(mode)](records, response_limit)


def format_entries(
    entries: List[HAREntry],
    mode: Union[OutputMode, str] = OutputMode.TAGGED,
    response_limit: int = ExtractorConfig.RESPONSE_PREVIEW_CHARS,
) -> str:
    """Normalize and render filtered entries in one call."""
    return render(to_records(entries), mode=mode, response_limit=response_limit)
