"""
Markdown Page Builder

Renders a markdown document to a standalone HTML page.  Fenced blocks
whose info string is ``{ladybug}`` go through the directive extractor;
every other fence uses markdown-it's default renderer.
"""

import html

from markdown_it import MarkdownIt

from ladybug_console.document.assets import render_dependencies
from ladybug_console.document.extractor import DirectiveExtractor
from ladybug_console.document.models import BuildContext, CodeBlock
from ladybug_console.shared.config import LadybugSettings
from ladybug_console.shared.logging import setup_logging

logger = setup_logging("document.markdown_build", level="INFO")


def render_code_block(block: CodeBlock) -> str:
    """Render a published query block as ``<pre><code>`` markup."""
    attrs = [f'class="{html.escape(" ".join(block.classes))}"']
    if block.identifier:
        attrs.insert(0, f'id="{html.escape(block.identifier)}"')
    for key, value in block.attributes.items():
        attrs.append(f'{html.escape(key)}="{html.escape(value)}"')
    return (
        f"<pre {' '.join(attrs)}>"
        f'<code class="language-cypher">{html.escape(block.text)}</code>'
        "</pre>\n"
    )


class MarkdownPageBuilder:
    """Builds HTML pages from markdown, one build pass per ``build`` call."""

    def __init__(self, settings: LadybugSettings | None = None) -> None:
        self._settings = settings or LadybugSettings()
        self._md = MarkdownIt("commonmark", {"html": True}).enable("table")

        default_fence = self._md.renderer.rules["fence"]

        def ladybug_fence(tokens, idx, options, env):
            token = tokens[idx]
            extractor = env.get("extractor") if isinstance(env, dict) else None
            if extractor is not None:
                block = CodeBlock(text=token.content, classes=token.info.split())
                if extractor.applies_to(block):
                    return render_code_block(extractor.process(block))
            return default_fence(tokens, idx, options, env)

        self._md.renderer.rules["fence"] = ladybug_fence

    def new_context(self, output_format: str = "html") -> BuildContext:
        return BuildContext(
            output_format=output_format,
            environment_endpoint=self._settings.endpoint,
            timeout_seconds=self._settings.timeout_seconds,
        )

    def render_body(self, markdown_text: str, context: BuildContext) -> str:
        """Render the document body, processing query blocks into ``context``."""
        env = {"extractor": DirectiveExtractor(context)}
        return self._md.render(markdown_text, env)

    def build(self, markdown_text: str, title: str = "", output_format: str = "html") -> str:
        """Render a complete HTML page.

        Companion assets appear once in the head, and only when the
        document contains at least one query block.
        """
        context = self.new_context(output_format)
        body = self.render_body(markdown_text, context)
        logger.info("Built page %r with %d query block(s)", title, context.block_count)

        head_assets = render_dependencies(context)
        return (
            "<!doctype html>\n"
            '<html lang="en">\n'
            "<head>\n"
            '<meta charset="utf-8">\n'
            f"<title>{html.escape(title)}</title>\n"
            + (f"{head_assets}\n" if head_assets else "")
            + "</head>\n"
            "<body>\n"
            f"{body}"
            "</body>\n"
            "</html>\n"
        )
