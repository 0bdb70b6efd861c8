"""
@brief
Pydantic models for allocation rules.

@details
A rule is one variant of a tagged union discriminated by `type`. Every
variant carries its own parameter record, so a co-run rule can never hold
load-limit parameters and vice versa. Ids referenced inside parameters
(task ids, group tags) are kept as given and not resolved against uploads.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, field_validator

from alchemist.normalize.values import parse_phase_list, split_list

RULE_TYPES = (
    "co-run",
    "slot-restriction",
    "load-limit",
    "phase-window",
    "pattern-match",
    "precedence-override",
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_rule_id() -> str:
    return f"rule-{uuid.uuid4().hex[:12]}"


class _RuleModel(BaseModel):
    model_config = {
        "extra": "forbid",  # Parameter shapes are closed per rule type
        "populate_by_name": True,
        "str_strip_whitespace": True,
    }


# ------------------------------------------------------------
# Parameter records
# ------------------------------------------------------------
class CoRunParameters(_RuleModel):
    """Tasks that must run together."""

    task_ids: list[str] = Field(alias="taskIds")

    @field_validator("task_ids", mode="before")
    @classmethod
    def _split(cls, v: Any) -> list[str]:
        return split_list(v)

    @field_validator("task_ids")
    @classmethod
    def _at_least_two(cls, v: list[str]) -> list[str]:
        if len(v) < 2:
            raise ValueError("co-run rule needs at least two task ids")
        return v


class SlotRestrictionParameters(_RuleModel):
    group_type: Literal["client", "worker"] = Field(alias="groupType")
    group_tag: str = Field(alias="groupTag", min_length=1)
    min_common_slots: int = Field(alias="minCommonSlots", ge=1)


class LoadLimitParameters(_RuleModel):
    worker_group: str = Field(alias="workerGroup", min_length=1)
    max_slots_per_phase: int = Field(alias="maxSlotsPerPhase", ge=1)


class PhaseWindowParameters(_RuleModel):
    """
    @brief
    Phases a single task is allowed to run in.

    @details
    allowedPhases accepts a list of integers or the same text syntax as
    task preferred phases ("1-3", "1,2,4").
    """

    task_id: str = Field(alias="taskId", min_length=1)
    allowed_phases: list[Annotated[int, Field(ge=1)]] = Field(alias="allowedPhases", min_length=1)

    @field_validator("allowed_phases", mode="before")
    @classmethod
    def _parse_text(cls, v: Any) -> Any:
        if isinstance(v, str):
            return parse_phase_list(v)
        return v


class PatternMatchParameters(_RuleModel):
    pattern: str = Field(min_length=1)
    action: Literal["restrict", "allow", "prioritize"] = "restrict"

    @field_validator("pattern")
    @classmethod
    def _compiles(cls, v: str) -> str:
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regular expression: {e}") from e
        return v


class PrecedenceOverrideParameters(_RuleModel):
    condition: str = Field(min_length=1)
    override: bool = True


# ------------------------------------------------------------
# Rule envelope
# ------------------------------------------------------------
class _RuleBase(_RuleModel):
    """
    @brief
    Fields shared by every rule variant.

    @details
    priority orders rules (lower first); is_active is advisory metadata and
    is not enforced by the validation engine.
    """

    id: str = Field(default_factory=_new_rule_id, min_length=1)
    name: str = Field(min_length=1)
    description: str | None = None
    priority: int = 1
    is_active: bool = Field(True, alias="isActive")
    created_at: datetime = Field(default_factory=_utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=_utc_now, alias="updatedAt")


class CoRunRule(_RuleBase):
    type: Literal["co-run"]
    parameters: CoRunParameters


class SlotRestrictionRule(_RuleBase):
    type: Literal["slot-restriction"]
    parameters: SlotRestrictionParameters


class LoadLimitRule(_RuleBase):
    type: Literal["load-limit"]
    parameters: LoadLimitParameters


class PhaseWindowRule(_RuleBase):
    type: Literal["phase-window"]
    parameters: PhaseWindowParameters


class PatternMatchRule(_RuleBase):
    type: Literal["pattern-match"]
    parameters: PatternMatchParameters


class PrecedenceOverrideRule(_RuleBase):
    type: Literal["precedence-override"]
    parameters: PrecedenceOverrideParameters


Rule = Annotated[
    Union[
        CoRunRule,
        SlotRestrictionRule,
        LoadLimitRule,
        PhaseWindowRule,
        PatternMatchRule,
        PrecedenceOverrideRule,
    ],
    Field(discriminator="type"),
]

RULE_ADAPTER: TypeAdapter[Rule] = TypeAdapter(Rule)


__all__ = [
    "RULE_ADAPTER",
    "RULE_TYPES",
    "Rule",
    "CoRunRule",
    "SlotRestrictionRule",
    "LoadLimitRule",
    "PhaseWindowRule",
    "PatternMatchRule",
    "PrecedenceOverrideRule",
    "CoRunParameters",
    "SlotRestrictionParameters",
    "LoadLimitParameters",
    "PhaseWindowParameters",
    "PatternMatchParameters",
    "PrecedenceOverrideParameters",
]
