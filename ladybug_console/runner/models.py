"""
Response schema for ``POST /api/v1/cypher``.

Every field is optional with a defined default, so a sparse response
degrades to an empty result instead of failing during rendering.
The shape is checked once, when the response is parsed.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ladybug_console.shared.exceptions import ResponseShapeError


class QueryStats(BaseModel):
    """Execution metadata returned alongside the rows."""

    model_config = ConfigDict(extra="ignore")

    nodes_created: int | None = Field(None, description="Nodes created by the query")
    relationships_created: int | None = Field(None, description="Relationships created")
    properties_set: int | None = Field(None, description="Properties set")
    execution_time_ms: int | float | None = Field(None, description="Server-side execution time")


class QueryResult(BaseModel):
    """Result of one query execution."""

    model_config = ConfigDict(extra="ignore")

    columns: list[str] = Field(default_factory=list, description="Column names in order")
    rows: list[dict[str, Any]] = Field(default_factory=list, description="Rows keyed by column")
    stats: QueryStats | None = Field(None, description="Optional execution statistics")
    error: str | None = Field(None, description="Application error reported by the service")

    @field_validator("columns", "rows", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def has_error(self) -> bool:
        return bool(self.error)

    @property
    def is_empty(self) -> bool:
        return not self.columns or not self.rows

    @classmethod
    def from_payload(cls, payload: Any) -> "QueryResult":
        """Validate a decoded JSON body.

        Raises:
            ResponseShapeError: If the body is not a result object.
        """
        if not isinstance(payload, dict):
            raise ResponseShapeError(
                f"expected a JSON object, got {type(payload).__name__}"
            )
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise ResponseShapeError(
                f"unexpected response shape ({exc.error_count()} error(s))"
            ) from exc
