"""Declarative schemas and constraints for generated record sets."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FieldDef(BaseModel):
    """A single field every generated record must carry."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Field name")
    type: str = Field(default="", description="Expected JSON type (string, integer, ...)")
    description: str = Field(default="", description="Human-readable field description")


class RecordSchema(BaseModel):
    """Structure of the records a model was asked to generate."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="", description="Schema name")
    description: str = Field(default="", description="Schema description")
    count: int | None = Field(default=None, ge=0, description="Number of records requested")
    fields: list[FieldDef] = Field(default_factory=list, description="Required fields")


class Rule(BaseModel):
    """A single validation rule applied to one field of every record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    field: str = Field(..., description="Target field")
    kind: str = Field(..., alias="rule", description="Rule kind (range, pattern, enum, ...)")
    minimum: float | None = Field(default=None, alias="min")
    maximum: float | None = Field(default=None, alias="max")
    exact: int | None = Field(default=None, description="Exact string length")
    regex: str = Field(default="", description="Regular expression for pattern rules")
    values: list[str] = Field(default_factory=list, description="Allowed values for enum rules")
    expected_type: str = Field(default="", description="Expected type for type rules")

    @field_validator("kind")
    @classmethod
    def normalize_kind(cls, v: str) -> str:
        """Normalize rule kind to lowercase."""
        return v.strip().lower()


class CrossFieldRule(BaseModel):
    """Relationship between two fields of the same record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: str = Field(default="if_then", alias="rule")
    if_field: str
    if_value: Any = None
    then_field: str
    then_value: Any = None


class DistributionCheck(BaseModel):
    """Aggregate property expected to hold across the whole record set."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    field: str
    check: str
    values: list[str] = Field(default_factory=list)
    value: bool | None = None
    target_ratio: float = Field(default=0.0, ge=0.0, le=1.0)
    tolerance: float = Field(default=0.0, ge=0.0)
    minimum: int = Field(default=0, alias="min", ge=0)


class Constraints(BaseModel):
    """Full rule set for one schema."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    schema_name: str = Field(default="", alias="schema")
    rules: list[Rule] = Field(default_factory=list)
    distribution_checks: list[DistributionCheck] = Field(default_factory=list)
    cross_field_rules: list[CrossFieldRule] = Field(default_factory=list)

    @property
    def unique_fields(self) -> list[str]:
        """Fields marked unique, in declaration order without repeats."""
        seen: dict[str, None] = {}
        for rule in self.rules:
            if rule.kind == "unique":
                seen.setdefault(rule.field, None)
        return list(seen)
