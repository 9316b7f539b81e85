"""Page runtime — executes published query blocks and renders their results."""

from ladybug_console.runner.client import CypherClient
from ladybug_console.runner.models import QueryResult, QueryStats
from ladybug_console.runner.page import Page
from ladybug_console.runner.runner import QueryRunner

__all__ = [
    "CypherClient",
    "Page",
    "QueryResult",
    "QueryRunner",
    "QueryStats",
]
