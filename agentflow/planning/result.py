"""
Planning Result

The structured routing decision parsed from an agent's output each round.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

TERMINATE = "TERMINATE"

# Field names and their short aliases
PLANNING_KEYS = frozenset({
    "planning",
    "next_agent_name", "name",
    "next_query", "query",
    "next_step_action", "next_step",
})


class PlanningResult(BaseModel):
    """
    Routing decision for the next round.

    Immutable; a new result replaces the previous one every round.
    A blank `next_agent_name` means no agent is left to run.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    planning: str = Field(
        default="",
        description="The model's reasoning for this decision",
    )
    next_agent_name: str = Field(
        default="",
        validation_alias=AliasChoices("next_agent_name", "name"),
        description="Agent that should run next",
    )
    next_query: str = Field(
        default="",
        validation_alias=AliasChoices("next_query", "query"),
        description="Input for the next agent",
    )
    next_step_action: str = Field(
        default="",
        validation_alias=AliasChoices("next_step_action", "next_step"),
        description="Next action, TERMINATE to stop",
    )

    @model_validator(mode="before")
    @classmethod
    def _has_planning_fields(cls, data: Any) -> Any:
        if isinstance(data, dict) and not PLANNING_KEYS.intersection(data):
            raise ValueError(f"Object has none of the planning fields {sorted(PLANNING_KEYS)}")
        return data

    @property
    def terminates(self) -> bool:
        return self.next_step_action.strip().upper() == TERMINATE

    @property
    def finished(self) -> bool:
        return not self.next_agent_name.strip()
