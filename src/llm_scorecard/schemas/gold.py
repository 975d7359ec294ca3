"""Ground-truth and model-output records consumed by the scorers."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class GradedCandidate(BaseModel):
    """Gold-standard relevance grade for one ranking candidate."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Candidate identifier")
    relevance: int = Field(..., ge=0, description="Relevance grade (e.g. 0-3)")
    reason: str = Field(default="", description="Why the grade was assigned")


class RankedResult(BaseModel):
    """A candidate identifier with the score a model assigned to it."""

    model_config = ConfigDict(frozen=True)

    id: str
    score: float = 0.0


class ToolCall(BaseModel):
    """A function call, either expected or emitted by a model."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    tool: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)


class ActionItem(BaseModel):
    """An action item extracted from meeting notes."""

    model_config = ConfigDict(frozen=True)

    owner: str = ""
    action: str = ""
    deadline: str | None = None
