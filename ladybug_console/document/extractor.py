"""
Directive Extractor — rewrites one ``{ladybug}`` block into published form.

Runs once per block during a document build.  Qualifying blocks lose
their directive lines and leading blank lines, get the canonical class
list, and carry their id and resolved endpoint as data attributes for
the page runtime.
"""

import re
from dataclasses import replace

from ladybug_console.document.assets import build_dependency
from ladybug_console.document.directives import (
    resolve_options,
    scan_directives,
    strip_leading_blank_lines,
)
from ladybug_console.document.models import BuildContext, CodeBlock
from ladybug_console.shared.logging import setup_logging

logger = setup_logging("document.extractor", level="INFO")

CELL_MARKER = "{ladybug}"

PUBLISHED_CLASSES = (
    "cypher",
    "cell-code",
    "ladybug-query",
    "language-cypher",
    "code-with-copy",
)

ID_ATTRIBUTE = "data-ladybug-id"
ENDPOINT_ATTRIBUTE = "data-ladybug-endpoint"

_ATTRIBUTE_UNSAFE = re.compile(r"[^a-z0-9_-]+")


def attribute_name(key: str) -> str | None:
    """Map a directive key to a ``data-ladybug-*`` name, or None if nothing is left."""
    slug = _ATTRIBUTE_UNSAFE.sub("-", key.lower()).strip("-")
    return f"data-ladybug-{slug}" if slug else None


class DirectiveExtractor:
    """Transforms query blocks for a single build pass."""

    def __init__(self, context: BuildContext) -> None:
        self._context = context

    @property
    def context(self) -> BuildContext:
        return self._context

    def applies_to(self, block: CodeBlock) -> bool:
        return CELL_MARKER in block.classes and self._context.is_html

    def process(self, block: CodeBlock) -> CodeBlock:
        """Return the published form of ``block``.

        Blocks without the ``{ladybug}`` marker, or built for a non-HTML
        format, come back unchanged.
        """
        if not self.applies_to(block):
            return block

        if self._context.register_dependency(build_dependency(self._context)):
            logger.debug("Registered %s assets for this build", CELL_MARKER)

        block_id = self._context.next_block_id()
        code, directives = scan_directives(block.text)
        options = resolve_options(directives, self._context.environment_endpoint)

        attributes = dict(block.attributes)
        attributes[ID_ATTRIBUTE] = str(block_id)
        attributes[ENDPOINT_ATTRIBUTE] = options["endpoint"]
        for key, value in options.items():
            name = attribute_name(key)
            if name and name not in (ID_ATTRIBUTE, ENDPOINT_ATTRIBUTE):
                attributes[name] = value

        logger.debug(
            "Block %d: %d directive(s), endpoint=%s",
            block_id, len(directives), options["endpoint"],
        )

        return replace(
            block,
            text=strip_leading_blank_lines(code),
            classes=list(PUBLISHED_CLASSES),
            attributes=attributes,
        )
