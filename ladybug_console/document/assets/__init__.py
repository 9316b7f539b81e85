"""
Companion assets for pages that contain query blocks.

The stylesheet ships with the package and is inlined into the page.
The page configuration travels as a JSON script element that the page
runtime reads back (default endpoint and timeout of the build).
"""

import json
from importlib import resources

from ladybug_console import __version__
from ladybug_console.document.models import BuildContext, HtmlDependency

DEPENDENCY_NAME = "ladybug-query"
STYLESHEET = "ladybug-query.css"
CONFIG_SCRIPT_ID = "ladybug-query-config"


def read_asset(name: str) -> str:
    """Return the text of a packaged asset file."""
    return resources.files(__name__).joinpath(name).read_text(encoding="utf-8")


def build_dependency(context: BuildContext) -> HtmlDependency:
    """Describe the assets a page with query blocks needs."""
    config = {"timeout_ms": int(context.timeout_seconds * 1000)}
    if context.environment_endpoint:
        config["endpoint"] = context.environment_endpoint
    return HtmlDependency(
        name=DEPENDENCY_NAME,
        version=__version__,
        stylesheets=[STYLESHEET],
        config=config,
    )


def render_dependency(dependency: HtmlDependency) -> str:
    """Render a dependency as inline ``<style>`` and config ``<script>`` tags."""
    parts = []
    for stylesheet in dependency.stylesheets:
        parts.append(
            f'<style data-dependency="{dependency.name}-{dependency.version}">\n'
            f"{read_asset(stylesheet)}</style>"
        )
    # "</" would terminate the script element early
    payload = json.dumps(dependency.config, sort_keys=True).replace("</", "<\\/")
    parts.append(
        f'<script type="application/json" id="{CONFIG_SCRIPT_ID}">{payload}</script>'
    )
    return "\n".join(parts)


def render_dependencies(context: BuildContext) -> str:
    """Render every dependency registered during this build."""
    return "\n".join(render_dependency(dep) for dep in context.dependencies)
