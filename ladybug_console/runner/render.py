"""
Result rendering for query blocks.

Every function returns an HTML fragment for a block's result region.
Values and messages are always escaped before they reach the markup.
"""

import html
import json
from typing import Any

from ladybug_console.runner.models import QueryResult, QueryStats
from ladybug_console.shared.exceptions import SOURCE_LABEL

NULL_MARKER = '<span class="null">null</span>'
EMPTY_NOTICE = '<p class="ladybug-empty">No results</p>'
RUNNING_NOTICE = '<p class="ladybug-running">Running query...</p>'
STATS_DELIMITER = " | "


def format_value(value: Any) -> str:
    """Convert a cell value to display text (unescaped)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def render_cell(value: Any) -> str:
    if value is None:
        return NULL_MARKER
    return html.escape(format_value(value))


def render_table(result: QueryResult) -> str:
    """Render rows as a table, or the empty notice when there are none."""
    if result.is_empty:
        return EMPTY_NOTICE

    parts = ['<table class="ladybug-result-table">', "<thead><tr>"]
    for column in result.columns:
        parts.append(f"<th>{html.escape(column)}</th>")
    parts.append("</tr></thead><tbody>")

    for row in result.rows:
        parts.append("<tr>")
        for column in result.columns:
            parts.append(f"<td>{render_cell(row.get(column))}</td>")
        parts.append("</tr>")

    parts.append("</tbody></table>")
    return "".join(parts)


def render_stats(stats: QueryStats | None) -> str:
    """Render the one-line statistics summary, or nothing."""
    if stats is None:
        return ""

    parts = []
    if stats.nodes_created:
        parts.append(f"{stats.nodes_created} nodes created")
    if stats.relationships_created:
        parts.append(f"{stats.relationships_created} rels created")
    if stats.properties_set:
        parts.append(f"{stats.properties_set} props set")
    if stats.execution_time_ms is not None:
        elapsed = stats.execution_time_ms
        # JSON numbers like 12.0 print as 12
        if isinstance(elapsed, float) and elapsed.is_integer():
            elapsed = int(elapsed)
        parts.append(f"{elapsed} ms")

    if not parts:
        return ""
    return f'<div class="ladybug-stats">{html.escape(STATS_DELIMITER.join(parts))}</div>'


def render_error(message: str, source: str | None = SOURCE_LABEL) -> str:
    """Render an error message.

    Transport failures carry the source label; application errors
    reported by the service pass ``source=None``.
    """
    text = f"{source}: {message}" if source else message
    return f'<div class="ladybug-error">{html.escape(text)}</div>'


def render_result(result: QueryResult) -> str:
    """Render exactly one of the error path or the table path."""
    if result.has_error:
        return render_error(result.error, source=None)
    return render_table(result) + render_stats(result.stats)
