"""
Published Page Model

A light document model over a published HTML page.  It discovers every
query block (``<pre class="ladybug-query">``), tracks the control region
inside each block and the result region right after it, and splices
those regions back into the original markup on serialization.  Markup
outside the regions is written back byte for byte.
"""

import html
import json
import logging
from dataclasses import dataclass, field
from html.parser import HTMLParser
from typing import Awaitable, Callable

from ladybug_console.document.assets import CONFIG_SCRIPT_ID
from ladybug_console.document.extractor import ENDPOINT_ATTRIBUTE, ID_ATTRIBUTE

logger = logging.getLogger("ladybug.runner.page")

BLOCK_CLASS = "ladybug-query"
CONTROLS_CLASS = "buttons"
RESULT_CLASS = "ladybug-result"
RUN_BUTTON_CLASS = "run-ladybug-button"
RUN_TITLE = "Run Cypher query against ladybug-rs"


# ─── Regions ───────────────────────────────────────────────


@dataclass
class RunControl:
    """Executable control bound to one block."""

    on_activate: Callable[[], Awaitable["ResultRegion"]]
    title: str = RUN_TITLE

    async def activate(self) -> "ResultRegion":
        return await self.on_activate()

    def to_html(self) -> str:
        title = html.escape(self.title)
        return (
            f'<button class="{RUN_BUTTON_CLASS} play-button" '
            f'title="{title}" aria-label="{title}"></button>'
        )


@dataclass
class ControlRegion:
    """The ``div.buttons`` holder at the top of a block."""

    controls: list[RunControl] = field(default_factory=list)
    # Offset just past an existing <div class="buttons"> start tag
    insert_at: int | None = None
    # The existing region already holds a run button from an earlier run
    has_run_button: bool = False

    @property
    def existed(self) -> bool:
        return self.insert_at is not None

    def insert(self, control: RunControl) -> None:
        self.controls.insert(0, control)

    def controls_html(self) -> str:
        """Markup for controls not already present in the page."""
        pending = self.controls[1:] if self.has_run_button else self.controls
        return "".join(control.to_html() for control in pending)

    def to_html(self) -> str:
        return f'<div class="{CONTROLS_CLASS}">{self.controls_html()}</div>'


@dataclass
class ResultRegion:
    """The ``div.ladybug-result`` area following a block.

    ``begin`` opens a run and returns its token.  ``settle`` only writes
    when the token still belongs to the latest run.
    """

    content: str = ""
    generation: int = 0
    # Span of a result region already present in the source page
    span: tuple[int, int] | None = None

    def begin(self, running_html: str) -> int:
        self.generation += 1
        self.content = running_html
        return self.generation

    def settle(self, token: int, content: str) -> bool:
        if token != self.generation:
            return False
        self.content = content
        return True

    def to_html(self) -> str:
        return f'<div class="{RESULT_CLASS}">{self.content}</div>'


# ─── Blocks ────────────────────────────────────────────────


@dataclass
class QueryBlock:
    """One published query block and its regions."""

    query: str
    attributes: dict[str, str]
    start_tag_end: int
    end: int
    controls: ControlRegion | None = None
    result: ResultRegion | None = None

    @property
    def block_id(self) -> str | None:
        return self.attributes.get(ID_ATTRIBUTE)

    @property
    def endpoint(self) -> str | None:
        return self.attributes.get(ENDPOINT_ATTRIBUTE) or None

    def ensure_controls(self) -> ControlRegion:
        if self.controls is None:
            self.controls = ControlRegion()
        return self.controls

    def ensure_result(self) -> ResultRegion:
        if self.result is None:
            self.result = ResultRegion()
        return self.result


class _PageParser(HTMLParser):
    """Collects query blocks and the page configuration from raw HTML."""

    def __init__(self, source: str) -> None:
        super().__init__(convert_charrefs=True)
        self._source = source
        self._line_starts = [0]
        for index, char in enumerate(source):
            if char == "\n":
                self._line_starts.append(index + 1)

        self.blocks: list[QueryBlock] = []
        self.config: dict = {}

        self._current: QueryBlock | None = None
        self._existing_controls: int | None = None
        self._existing_run_button = False
        self._query_parts: list[str] = []
        self._code_depth = 0

        self._after_block: QueryBlock | None = None
        self._result_block: QueryBlock | None = None
        self._result_start = 0
        self._result_depth = 0

        self._config_parts: list[str] | None = None

    def _offset(self) -> int:
        line, column = self.getpos()
        return self._line_starts[line - 1] + column

    def _end_tag_end(self) -> int:
        return self._source.index(">", self._offset()) + 1

    def handle_starttag(self, tag, attrs):
        start = self._offset()
        attributes = {key: value or "" for key, value in attrs}
        classes = attributes.get("class", "").split()

        if self._result_block is not None:
            if tag == "div":
                self._result_depth += 1
            return

        if self._after_block is not None:
            block, self._after_block = self._after_block, None
            if tag == "div" and RESULT_CLASS in classes:
                self._result_block = block
                self._result_start = start
                self._result_depth = 1
                return

        if tag == "script" and attributes.get("id") == CONFIG_SCRIPT_ID:
            self._config_parts = []
            return

        end = start + len(self.get_starttag_text() or "")
        if self._current is None:
            if tag == "pre" and BLOCK_CLASS in classes:
                self._current = QueryBlock(
                    query="", attributes=attributes, start_tag_end=end, end=end,
                )
                self._existing_controls = None
                self._existing_run_button = False
                self._query_parts = []
                self._code_depth = 0
            return

        if tag == "code":
            self._code_depth += 1
        elif tag == "div" and CONTROLS_CLASS in classes and self._existing_controls is None:
            self._existing_controls = end
        elif tag == "button" and RUN_BUTTON_CLASS in classes and self._existing_controls is not None:
            self._existing_run_button = True

    def handle_endtag(self, tag):
        if self._result_block is not None:
            if tag == "div":
                self._result_depth -= 1
                if self._result_depth == 0:
                    self._result_block.result = ResultRegion(
                        span=(self._result_start, self._end_tag_end()),
                    )
                    self._result_block = None
            return

        self._after_block = None
        if self._config_parts is not None and tag == "script":
            self._load_config("".join(self._config_parts))
            self._config_parts = None
            return

        if self._current is None:
            return
        if tag == "code":
            self._code_depth = max(0, self._code_depth - 1)
        elif tag == "pre":
            block = self._current
            block.query = "".join(self._query_parts)
            block.end = self._end_tag_end()
            if self._existing_controls is not None:
                block.controls = ControlRegion(
                    insert_at=self._existing_controls,
                    has_run_button=self._existing_run_button,
                )
            self.blocks.append(block)
            self._current = None
            self._after_block = block

    def handle_data(self, data):
        if self._config_parts is not None:
            self._config_parts.append(data)
        elif self._current is not None:
            if self._code_depth > 0:
                self._query_parts.append(data)
        elif self._after_block is not None and data.strip():
            self._after_block = None

    def _load_config(self, payload: str) -> None:
        try:
            config = json.loads(payload)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable %s script", CONFIG_SCRIPT_ID)
            return
        if isinstance(config, dict):
            self.config = config


class Page:
    """A published page with its query blocks."""

    def __init__(self, source: str, blocks: list[QueryBlock], config: dict | None = None):
        self._source = source
        self.blocks = blocks
        self.config = config or {}
        self.initialized = False

    @classmethod
    def from_html(cls, source: str) -> "Page":
        parser = _PageParser(source)
        parser.feed(source)
        parser.close()
        logger.debug("Found %d query block(s)", len(parser.blocks))
        return cls(source, parser.blocks, parser.config)

    @property
    def default_endpoint(self) -> str | None:
        endpoint = self.config.get("endpoint")
        return endpoint if isinstance(endpoint, str) and endpoint else None

    @property
    def timeout_seconds(self) -> float | None:
        timeout_ms = self.config.get("timeout_ms")
        if isinstance(timeout_ms, (int, float)) and timeout_ms > 0:
            return timeout_ms / 1000
        return None

    def to_html(self) -> str:
        """Serialize the page with every region spliced into place."""
        edits: list[tuple[int, int, str]] = []
        for block in self.blocks:
            if block.controls is not None and block.controls.controls:
                if block.controls.existed:
                    markup = block.controls.controls_html()
                    if markup:
                        at = block.controls.insert_at
                        edits.append((at, at, markup))
                else:
                    at = block.start_tag_end
                    edits.append((at, at, block.controls.to_html()))
            if block.result is not None:
                if block.result.span is not None:
                    start, end = block.result.span
                    if block.result.generation:
                        edits.append((start, end, block.result.to_html()))
                elif block.result.generation:
                    edits.append((block.end, block.end, "\n" + block.result.to_html()))

        output = self._source
        for start, end, text in sorted(edits, key=lambda edit: edit[0], reverse=True):
            output = output[:start] + text + output[end:]
        return output
