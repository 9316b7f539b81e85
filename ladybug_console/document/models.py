"""
Document Build Models

Data classes shared by the directive extractor and its host adapters.
``BuildContext`` holds all state that lives for exactly one build pass.
"""

from dataclasses import dataclass, field

HTML_FORMATS = frozenset({
    "html", "html4", "html5", "revealjs", "slidy", "s5", "dzslides", "slideous",
})


@dataclass
class CodeBlock:
    """A fenced code block as handed over by a host document tool."""

    text: str
    classes: list[str] = field(default_factory=list)
    attributes: dict[str, str] = field(default_factory=dict)
    identifier: str = ""


@dataclass
class HtmlDependency:
    """Companion assets attached to a page that contains query blocks."""

    name: str
    version: str
    stylesheets: list[str] = field(default_factory=list)
    config: dict = field(default_factory=dict)


@dataclass
class BuildContext:
    """Mutable state for a single document build.

    Create one at build start and drop it at build end.  Block ids and
    the asset-registration flag never carry over between builds.
    """

    output_format: str = "html"
    environment_endpoint: str | None = None
    timeout_seconds: float = 10.0
    block_count: int = 0
    assets_registered: bool = False
    dependencies: list[HtmlDependency] = field(default_factory=list)

    @property
    def is_html(self) -> bool:
        # pandoc passes extensions along, e.g. "html5+smart"
        base = self.output_format.split("+", 1)[0].split("-", 1)[0]
        return base.lower() in HTML_FORMATS

    def next_block_id(self) -> int:
        self.block_count += 1
        return self.block_count

    def register_dependency(self, dependency: HtmlDependency) -> bool:
        """Attach ``dependency`` unless this build already registered assets.

        Returns:
            True when this call performed the registration.
        """
        if self.assets_registered:
            return False
        self.assets_registered = True
        self.dependencies.append(dependency)
        return True
