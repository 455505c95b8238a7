"""
Tool argument schemas and typed results.

Arguments arrive from the MCP boundary with omitted values as ``None``;
those are dropped before validation so field defaults apply.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from neo4j_readonly_mcp.shared.exceptions import ArgumentValidationError

DEFAULT_SAMPLE_LIMIT = 5
MAX_SAMPLE_LIMIT = 50


class ToolArguments(BaseModel):
    """Base for all tool argument schemas."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_missing(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @classmethod
    def parse(cls, **arguments: Any) -> "ToolArguments":
        """Validate arguments, raising ArgumentValidationError with field-level detail."""
        try:
            return cls.model_validate(arguments)
        except ValidationError as exc:
            problems = [
                f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}"
                for err in exc.errors()
            ]
            raise ArgumentValidationError("Invalid arguments: " + "; ".join(problems)) from exc


class QueryArgs(ToolArguments):
    query: str = Field(description="The Cypher query to execute (read-only operations only)")
    parameters: dict[str, Any] = Field(
        default_factory=dict, description="Optional parameters for the query"
    )


class NodeCountArgs(ToolArguments):
    label: str | None = Field(default=None, description="Optional label to count nodes for")


class RelationshipCountArgs(ToolArguments):
    type: str | None = Field(default=None, description="Optional relationship type to count")


class SampleDataArgs(ToolArguments):
    label: str | None = None
    relationship_type: str | None = Field(default=None, alias="relationshipType")
    limit: int = Field(default=DEFAULT_SAMPLE_LIMIT, ge=1, le=MAX_SAMPLE_LIMIT)

    @model_validator(mode="after")
    def _one_target(self) -> "SampleDataArgs":
        if self.label and self.relationship_type:
            raise ValueError(
                "Please specify either 'label' for nodes or 'relationshipType' "
                "for relationships, not both"
            )
        return self


class NodePropertiesArgs(ToolArguments):
    label: str


class RelationshipPropertiesArgs(ToolArguments):
    type: str


@dataclass
class PropertyAnalysis:
    """Property names discovered on a label or relationship type.

    ``degraded`` is True when the type-enriched query was unavailable and
    the rows carry no ``type`` column.
    """

    properties: list[dict[str, Any]] = field(default_factory=list)
    degraded: bool = False
