"""
Query Runner — makes every published block on a page executable.

``initialize`` wires one run control into each block.  Activating a
control runs that block's query once and renders the outcome into the
block's own result region.  Blocks never share state, so any number of
them can run at the same time.
"""

import asyncio
import time

from ladybug_console.runner.client import CypherClient
from ladybug_console.runner.page import Page, QueryBlock, ResultRegion, RunControl
from ladybug_console.runner.render import RUNNING_NOTICE, render_error, render_result
from ladybug_console.shared.config import DEFAULT_ENDPOINT
from ladybug_console.shared.exceptions import LadybugError
from ladybug_console.shared.logging import generate_correlation_id, setup_logging

logger = setup_logging("runner", level="INFO")


class QueryRunner:
    """Runs query blocks of one page against their ladybug-rs endpoints."""

    def __init__(self, client: CypherClient, default_endpoint: str = DEFAULT_ENDPOINT) -> None:
        self._client = client
        self._default_endpoint = default_endpoint

    def initialize(self, page: Page) -> list[RunControl]:
        """Attach a run control to every block on ``page``.

        Only the first call per page does anything.

        Returns:
            The controls created by this call, in page order.
        """
        if page.initialized:
            logger.debug("Page already initialized, skipping")
            return []
        page.initialized = True

        controls = []
        for block in page.blocks:
            control = RunControl(on_activate=self._bind(block, page))
            block.ensure_controls().insert(control)
            controls.append(control)

        logger.info("Initialized %d query block(s)", len(controls))
        return controls

    def _bind(self, block: QueryBlock, page: Page):
        async def activate() -> ResultRegion:
            return await self.run(block, page)
        return activate

    def resolve_endpoint(self, block: QueryBlock, page: Page | None = None) -> str:
        """Block attribute, then page configuration, then the runner default."""
        if block.endpoint:
            return block.endpoint
        if page is not None and page.default_endpoint:
            return page.default_endpoint
        return self._default_endpoint

    async def run(self, block: QueryBlock, page: Page | None = None) -> ResultRegion:
        """Execute ``block``'s query and render into its result region.

        Failures never propagate: each one becomes an error message in
        the region.  A run whose result arrives after a newer run on the
        same block started leaves the region alone.
        """
        region = block.ensure_result()
        token = region.begin(RUNNING_NOTICE)

        query = block.query
        endpoint = self.resolve_endpoint(block, page)
        run_id = generate_correlation_id()
        started = time.perf_counter()
        logger.info("[%s] Running block %s against %s", run_id, block.block_id, endpoint)

        try:
            result = await self._client.execute(endpoint, query)
            content = render_result(result)
            outcome = "application error" if result.has_error else f"{len(result.rows)} row(s)"
        except LadybugError as exc:
            content = render_error(exc.message, source=exc.source)
            outcome = f"failed: {exc}"
        except Exception as exc:
            logger.exception("[%s] Unexpected error running block %s", run_id, block.block_id)
            content = render_error(str(exc) or type(exc).__name__)
            outcome = f"failed: {type(exc).__name__}"

        elapsed_ms = (time.perf_counter() - started) * 1000
        if region.settle(token, content):
            logger.info("[%s] Block %s %s in %.0f ms", run_id, block.block_id, outcome, elapsed_ms)
        else:
            logger.info("[%s] Block %s superseded by a newer run, result dropped", run_id, block.block_id)
        return region

    async def run_all(self, page: Page) -> list[ResultRegion]:
        """Initialize ``page`` if needed and activate every block concurrently."""
        self.initialize(page)
        controls = [
            block.controls.controls[0]
            for block in page.blocks
            if block.controls is not None and block.controls.controls
        ]
        return await asyncio.gather(*(control.activate() for control in controls))
