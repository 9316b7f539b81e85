"""Document build — directive extraction and host adapters for ``{ladybug}`` blocks."""

from ladybug_console.document.directives import resolve_options, scan_directives
from ladybug_console.document.extractor import DirectiveExtractor
from ladybug_console.document.models import BuildContext, CodeBlock

__all__ = [
    "BuildContext",
    "CodeBlock",
    "DirectiveExtractor",
    "resolve_options",
    "scan_directives",
]
