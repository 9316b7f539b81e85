"""
Directive scanning for query blocks.

A directive is a Cypher comment line of the form ``//| key: value``
placed anywhere inside a ``{ladybug}`` block.  Directive lines are
removed from the published code and their values override the
built-in cell options.  Nothing here depends on a document library:
the host adapters hand in plain text and get plain text back.
"""

import re

from ladybug_console.shared.config import DEFAULT_ENDPOINT

# Key ends at the first colon, so values may carry URLs with ports
_DIRECTIVE_PATTERN = re.compile(r"^\s*//\|\s*(?P<key>[^:]*?)\s*:\s*(?P<value>.*?)\s*$")

DEFAULT_CONTEXT = "interactive"


def scan_directives(text: str) -> tuple[str, dict[str, str]]:
    """Split a block's source into residual code and its directives.

    Lines that look like directives but have no colon or an empty key
    are kept as code.  A key given twice keeps its last value.

    Args:
        text: Raw block text as written by the author.

    Returns:
        Tuple of (code without directive lines, directive mapping).
    """
    directives: dict[str, str] = {}
    code_lines: list[str] = []

    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()

    # Only "\n" ends a line; other separators belong to the query text
    for line in lines:
        match = _DIRECTIVE_PATTERN.match(line)
        if match and match.group("key"):
            directives[match.group("key")] = match.group("value")
        else:
            code_lines.append(line)

    return "\n".join(code_lines), directives


def strip_leading_blank_lines(code: str) -> str:
    """Drop empty or whitespace-only lines before the first real line."""
    lines = code.split("\n")
    while lines and not lines[0].strip():
        lines.pop(0)
    return "\n".join(lines)


def resolve_endpoint(
    block_value: str | None,
    environment_value: str | None = None,
) -> str:
    """Pick the submission endpoint for one block.

    Precedence: block directive, then environment default, then
    ``DEFAULT_ENDPOINT``.  Empty strings count as unset.
    """
    for candidate in (block_value, environment_value):
        if candidate:
            return candidate
    return DEFAULT_ENDPOINT


def default_options(environment_endpoint: str | None = None) -> dict[str, str]:
    """Built-in cell options before any directive is applied."""
    return {
        "context": DEFAULT_CONTEXT,
        "endpoint": resolve_endpoint(None, environment_endpoint),
    }


def resolve_options(
    directives: dict[str, str],
    environment_endpoint: str | None = None,
) -> dict[str, str]:
    """Merge directives over the defaults.

    Unrecognized keys pass through untouched.  ``endpoint`` always
    resolves to a non-empty URL.
    """
    options = default_options(environment_endpoint)
    options.update(directives)
    options["endpoint"] = resolve_endpoint(directives.get("endpoint"), environment_endpoint)
    return options
