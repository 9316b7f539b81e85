"""
Pandoc JSON filter for ``{ladybug}`` blocks.

Reads a pandoc JSON document on stdin and writes the filtered document
to stdout.  Quarto and pandoc pass the target format as the first
argument.

Run as:  python -m ladybug_console.document.pandoc_filter html
"""

import json
import sys
from typing import Any

from ladybug_console.document.assets import render_dependencies
from ladybug_console.document.extractor import DirectiveExtractor
from ladybug_console.document.models import BuildContext, CodeBlock
from ladybug_console.shared.config import LadybugSettings
from ladybug_console.shared.exceptions import DocumentFormatError
from ladybug_console.shared.logging import setup_logging

logger = setup_logging("document.pandoc_filter", level="INFO")


# ─── AST conversion ────────────────────────────────────────


def _to_code_block(element: dict[str, Any]) -> CodeBlock:
    (identifier, classes, pairs), text = element["c"]
    return CodeBlock(
        text=text,
        classes=list(classes),
        attributes={key: value for key, value in pairs},
        identifier=identifier,
    )


def _from_code_block(block: CodeBlock) -> dict[str, Any]:
    pairs = [[key, value] for key, value in block.attributes.items()]
    return {"t": "CodeBlock", "c": [[block.identifier, block.classes, pairs], block.text]}


def _walk(node: Any, extractor: DirectiveExtractor) -> Any:
    """Rebuild ``node`` with every qualifying CodeBlock rewritten."""
    if isinstance(node, list):
        return [_walk(item, extractor) for item in node]
    if isinstance(node, dict):
        if node.get("t") == "CodeBlock":
            block = _to_code_block(node)
            if extractor.applies_to(block):
                return _from_code_block(extractor.process(block))
            return node
        return {key: _walk(value, extractor) for key, value in node.items()}
    return node


# ─── Filter entry points ───────────────────────────────────


def filter_document(
    document: dict[str, Any],
    output_format: str,
    settings: LadybugSettings | None = None,
) -> dict[str, Any]:
    """Apply the extractor to a pandoc JSON document.

    Args:
        document: Parsed pandoc JSON AST.
        output_format: Target format as passed by pandoc (e.g. 'html5').
        settings: Optional settings (defaults read from the environment).

    Returns:
        The filtered document.  When at least one block qualified, a raw
        HTML block with the companion assets leads the body.

    Raises:
        DocumentFormatError: If ``document`` has no top-level block list.
    """
    if not isinstance(document, dict) or not isinstance(document.get("blocks"), list):
        raise DocumentFormatError("input is not a pandoc JSON document")

    settings = settings or LadybugSettings()
    context = BuildContext(
        output_format=output_format,
        environment_endpoint=settings.endpoint,
        timeout_seconds=settings.timeout_seconds,
    )
    extractor = DirectiveExtractor(context)

    filtered = dict(document)
    filtered["blocks"] = _walk(document["blocks"], extractor)

    assets = render_dependencies(context)
    if assets:
        filtered["blocks"].insert(0, {"t": "RawBlock", "c": ["html", assets]})

    logger.debug("Filtered %d query block(s) for %s", context.block_count, output_format)
    return filtered


def run_filter(output_format: str, stdin=None, stdout=None) -> None:
    """Read a document from ``stdin``, filter it, write it to ``stdout``."""
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    try:
        document = json.load(stdin)
    except json.JSONDecodeError as exc:
        raise DocumentFormatError(f"invalid JSON on stdin: {exc}") from exc
    json.dump(filter_document(document, output_format), stdout)


if __name__ == "__main__":
    run_filter(sys.argv[1] if len(sys.argv) > 1 else "html")
