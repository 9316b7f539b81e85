"""
Tests for CypherClient and QueryRunner against a mocked ladybug-rs.

HTTP is stubbed with ``httpx.MockTransport``; no server is needed.
Run with: pytest tests/test_runner/test_runner.py -v

Requires: pytest, pytest-asyncio (asyncio_mode = "auto")
"""

import asyncio
import json

import httpx
import pytest

from ladybug_console.runner.client import CypherClient
from ladybug_console.runner.page import Page
from ladybug_console.runner.render import RUNNING_NOTICE
from ladybug_console.runner.runner import QueryRunner
from ladybug_console.shared.config import DEFAULT_ENDPOINT, LadybugSettings
from ladybug_console.shared.exceptions import (
    QueryHTTPError,
    QueryTimeoutError,
    QueryTransportError,
    ResponseShapeError,
)


def page_with_blocks(*blocks: tuple[str, str | None]) -> Page:
    parts = []
    for index, (query, endpoint) in enumerate(blocks, 1):
        endpoint_attr = f' data-ladybug-endpoint="{endpoint}"' if endpoint else ""
        parts.append(
            f'<pre class="ladybug-query" data-ladybug-id="{index}"{endpoint_attr}>'
            f"<code>{query}</code></pre>"
        )
    return Page.from_html("\n".join(parts) + "\n")


def make_runner(handler, timeout: float = 1.0, default_endpoint: str = DEFAULT_ENDPOINT):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    client = CypherClient(LadybugSettings(), http_client=http, timeout=timeout)
    return QueryRunner(client, default_endpoint=default_endpoint), http


@pytest.fixture
def requests_seen():
    return []


# ─── CypherClient ────────────────────────────────────────────


class TestCypherClient:
    """Request shape and error mapping."""

    async def test_request_shape(self, requests_seen):
        def handler(request: httpx.Request) -> httpx.Response:
            requests_seen.append(request)
            return httpx.Response(200, json={"columns": ["n"], "rows": [{"n": 1}]})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = CypherClient(LadybugSettings(), http_client=http)
            result = await client.execute("http://h:9000/", "MATCH (n) RETURN n")

        request = requests_seen[0]
        assert request.method == "POST"
        assert str(request.url) == "http://h:9000/api/v1/cypher"
        assert request.headers["content-type"] == "application/json"
        assert request.headers["accept"] == "application/json"
        assert json.loads(request.content) == {"query": "MATCH (n) RETURN n"}
        assert result.rows == [{"n": 1}]

    async def test_http_failure(self):
        def handler(request):
            return httpx.Response(500)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(QueryHTTPError) as excinfo:
                await CypherClient(LadybugSettings(), http_client=http).execute("http://h", "RETURN 1")

        assert excinfo.value.status_code == 500
        assert excinfo.value.message == "HTTP 500: Internal Server Error"

    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(QueryTransportError, match="connection refused"):
                await CypherClient(LadybugSettings(), http_client=http).execute("http://h", "RETURN 1")

    async def test_timeout(self):
        async def handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = CypherClient(LadybugSettings(), http_client=http, timeout=0.05)
            with pytest.raises(QueryTimeoutError) as excinfo:
                await client.execute("http://h", "RETURN 1")

        assert excinfo.value.message == "timeout"

    async def test_invalid_json(self):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(ResponseShapeError):
                await CypherClient(LadybugSettings(), http_client=http).execute("http://h", "RETURN 1")

    async def test_timeout_defaults_to_settings(self):
        assert CypherClient(LadybugSettings(timeout_seconds=3)).timeout == 3


# ─── QueryRunner ─────────────────────────────────────────────


class TestInitialize:

    def test_one_control_per_block(self):
        runner, _ = make_runner(lambda request: httpx.Response(200, json={}))
        page = page_with_blocks(("RETURN 1", None), ("RETURN 2", None))

        controls = runner.initialize(page)

        assert len(controls) == 2
        assert all(len(block.controls.controls) == 1 for block in page.blocks)
        assert page.to_html().count("run-ladybug-button") == 2

    def test_second_initialize_is_noop(self):
        runner, _ = make_runner(lambda request: httpx.Response(200, json={}))
        page = page_with_blocks(("RETURN 1", None))

        runner.initialize(page)

        assert runner.initialize(page) == []
        assert len(page.blocks[0].controls.controls) == 1


class TestRun:
    """End-to-end scenarios from activation to rendered region."""

    async def test_successful_query(self, requests_seen):
        def handler(request):
            requests_seen.append(request)
            return httpx.Response(200, json={"columns": ["n"], "rows": [{"n": "Ada"}, {"n": None}]})

        runner, http = make_runner(handler)
        page = page_with_blocks(("MATCH (n) RETURN n.name AS n", "http://h:9000"))
        control = runner.initialize(page)[0]

        region = await control.activate()
        await http.aclose()

        assert str(requests_seen[0].url) == "http://h:9000/api/v1/cypher"
        assert json.loads(requests_seen[0].content) == {"query": "MATCH (n) RETURN n.name AS n"}
        assert region.content.count("<tr>") == 3
        assert '<td><span class="null">null</span></td>' in region.content
        assert '<div class="ladybug-result"><table' in page.to_html()

    async def test_application_error(self):
        runner, http = make_runner(lambda request: httpx.Response(200, json={"error": "syntax error"}))
        page = page_with_blocks(("RETURN", None))

        region = await runner.run(page.blocks[0], page)
        await http.aclose()

        assert region.content == '<div class="ladybug-error">syntax error</div>'
        assert "<table" not in region.content

    async def test_http_500(self):
        runner, http = make_runner(lambda request: httpx.Response(500))
        page = page_with_blocks(("RETURN 1", None))

        region = await runner.run(page.blocks[0], page)
        await http.aclose()

        assert "HTTP 500: Internal Server Error" in region.content
        assert region.content.startswith('<div class="ladybug-error">ladybug-rs: ')

    async def test_timeout(self):
        async def handler(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={"columns": ["n"], "rows": [{"n": 1}]})

        runner, http = make_runner(handler, timeout=0.05)
        page = page_with_blocks(("RETURN 1", None))

        region = await runner.run(page.blocks[0], page)
        await http.aclose()

        assert region.content == '<div class="ladybug-error">ladybug-rs: timeout</div>'

    async def test_network_error_is_escaped(self):
        def handler(request):
            raise httpx.ConnectError("refused <host>", request=request)

        runner, http = make_runner(handler)
        page = page_with_blocks(("RETURN 1", None))

        region = await runner.run(page.blocks[0], page)
        await http.aclose()

        assert region.content == '<div class="ladybug-error">ladybug-rs: refused &lt;host&gt;</div>'

    async def test_unexpected_exception_is_rendered(self):
        def handler(request):
            raise RuntimeError("kaboom")

        runner, http = make_runner(handler)
        page = page_with_blocks(("RETURN 1", None))

        region = await runner.run(page.blocks[0], page)
        await http.aclose()

        assert region.content == '<div class="ladybug-error">ladybug-rs: kaboom</div>'

    async def test_endpoint_fallbacks(self, requests_seen):
        def handler(request):
            requests_seen.append(str(request.url))
            return httpx.Response(200, json={})

        runner, http = make_runner(handler)
        bare = page_with_blocks(("RETURN 1", None))
        configured = Page.from_html(
            '<script type="application/json" id="ladybug-query-config">{"endpoint": "http://page:5"}</script>'
            '<pre class="ladybug-query"><code>RETURN 1</code></pre>'
        )

        await runner.run(bare.blocks[0], bare)
        await runner.run(configured.blocks[0], configured)
        await http.aclose()

        assert requests_seen == [
            "http://127.0.0.1:8080/api/v1/cypher",
            "http://page:5/api/v1/cypher",
        ]

    async def test_running_state_shown_while_in_flight(self):
        release = asyncio.Event()

        async def handler(request):
            await release.wait()
            return httpx.Response(200, json={})

        runner, http = make_runner(handler)
        page = page_with_blocks(("RETURN 1", None))
        task = asyncio.create_task(runner.run(page.blocks[0], page))
        await asyncio.sleep(0.01)

        assert page.blocks[0].result.content == RUNNING_NOTICE

        release.set()
        region = await task
        await http.aclose()
        assert region.content == '<p class="ladybug-empty">No results</p>'

    async def test_reactivation_replaces_previous_result(self):
        responses = iter([
            httpx.Response(200, json={"columns": ["n"], "rows": [{"n": "first"}]}),
            httpx.Response(200, json={"error": "second"}),
        ])
        runner, http = make_runner(lambda request: next(responses))
        page = page_with_blocks(("RETURN 1", None))
        control = runner.initialize(page)[0]

        await control.activate()
        region = await control.activate()
        html = page.to_html()
        await http.aclose()

        assert region.content == '<div class="ladybug-error">second</div>'
        assert "first" not in html
        assert "<table" not in html
        assert html.count("ladybug-result") == 1

    async def test_stale_run_does_not_overwrite_newer(self):
        gates = [asyncio.Event(), asyncio.Event()]
        calls = []

        async def handler(request):
            index = len(calls)
            calls.append(index)
            await gates[index].wait()
            return httpx.Response(200, json={"error": f"run {index}"})

        runner, http = make_runner(handler)
        page = page_with_blocks(("RETURN 1", None))
        block = page.blocks[0]

        slow = asyncio.create_task(runner.run(block, page))
        await asyncio.sleep(0.01)
        fast = asyncio.create_task(runner.run(block, page))
        await asyncio.sleep(0.01)

        gates[1].set()
        await fast
        gates[0].set()
        await slow
        await http.aclose()

        assert block.result.content == '<div class="ladybug-error">run 1</div>'

    async def test_blocks_run_concurrently_without_interference(self):
        async def handler(request):
            query = json.loads(request.content)["query"]
            if query == "SLOW":
                await asyncio.sleep(0.05)
                return httpx.Response(200, json={"columns": ["q"], "rows": [{"q": "slow"}]})
            return httpx.Response(503)

        runner, http = make_runner(handler)
        page = page_with_blocks(("SLOW", None), ("FAST", None))

        regions = await runner.run_all(page)
        await http.aclose()

        assert "<td>slow</td>" in regions[0].content
        assert "HTTP 503: Service Unavailable" in regions[1].content
        assert "slow" not in regions[1].content
