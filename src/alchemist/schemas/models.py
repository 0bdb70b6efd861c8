"""
@brief
Pydantic data models for the Data Alchemist intake engine.

@details
Defines the canonical model types:
    - Client, Worker, Task: typed entities coerced from uploaded rows
    - Config: runtime configuration (from config.yaml) with nested sections

Entity fields use snake_case attributes with their canonical camelCase column
names as aliases, so dumps (by_alias=True) share one key space with raw rows.
Coercion is lenient by design of the upload flow: numbers are clamped and
defaulted silently, lists drop unusable tokens. Only structural failures
(missing id/name, malformed JSON, unknown enum values, bad e-mail) are raised
as validation errors; the raw-value checks live in alchemist.validator.fields.
"""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

from alchemist.normalize.values import (
    MAX_PHASE,
    clamp_int,
    parse_json_object,
    parse_number,
    parse_phase_list,
    split_list,
    to_text,
)

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Coercion bounds
PRIORITY_RANGE = (1, 5)
QUALIFICATION_RANGE = (1, 10)
DEFAULT_MAX_LOAD_PER_PHASE = 8
DEFAULT_MAX_HOURS_PER_WEEK = 40.0


# ------------------------------------------------------------
# Coercion helpers (pydantic "before" validators delegate here)
# ------------------------------------------------------------
def _required_text(value: Any, message: str) -> str:
    text = to_text(value)
    if not text:
        raise PydanticCustomError("missing_value", message)
    return text


def _optional_text(value: Any) -> str | None:
    return to_text(value) or None


def _enum_value(value: Any, default: str) -> str:
    text = to_text(value).lower()
    return text or default


def _email(value: Any) -> str | None:
    text = to_text(value)
    if not text:
        return None
    if not _EMAIL_RE.match(text):
        raise PydanticCustomError("invalid_email", "Invalid email address")
    return text


def _json_object(value: Any, label: str) -> dict[str, Any]:
    try:
        return parse_json_object(value)
    except ValueError:
        raise PydanticCustomError(
            "invalid_json", "Invalid JSON format in {label} field", {"label": label}
        ) from None


class _EntityModel(BaseModel):
    """
    @brief
    Base model for coerced upload rows.

    @details
    Unknown columns are ignored (uploads routinely carry extra columns) and
    fields can be populated either by attribute name or by canonical alias.
    """

    model_config = {
        "extra": "ignore",  # Uploads may carry arbitrary extra columns
        "populate_by_name": True,
        "use_enum_values": True,
    }


class Client(_EntityModel):
    """
    @brief
    One client record.

    @params
        priority_level : int
            Clamped to 1..5, defaults to 1 when missing or unparseable.
        requested_task_ids : list[str]
            Ordered task ids parsed from comma separated text.
        attributes_json : dict
            Arbitrary JSON object; malformed text is a validation error.
    """

    id: str = Field("", validate_default=True)
    name: str = Field("", validate_default=True)
    priority_level: int = Field(1, alias="priorityLevel")
    requested_task_ids: list[str] = Field(default_factory=list, alias="requestedTaskIDs")
    group_tag: str | None = Field(None, alias="groupTag")
    attributes_json: dict[str, Any] = Field(default_factory=dict, alias="attributesJSON")

    # Legacy fields kept for older upload templates
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    status: Literal["active", "inactive", "pending"] = "active"
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _check_id(cls, v: Any) -> str:
        return _required_text(v, "ClientID is required")

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, v: Any) -> str:
        return _required_text(v, "ClientName is required")

    @field_validator("priority_level", mode="before")
    @classmethod
    def _coerce_priority(cls, v: Any) -> int:
        return clamp_int(v, default=1, lower=PRIORITY_RANGE[0], upper=PRIORITY_RANGE[1])

    @field_validator("requested_task_ids", mode="before")
    @classmethod
    def _coerce_requested(cls, v: Any) -> list[str]:
        return split_list(v)

    @field_validator("group_tag", "phone", "address", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str | None:
        return _optional_text(v)

    @field_validator("attributes_json", mode="before")
    @classmethod
    def _coerce_attributes(cls, v: Any) -> dict[str, Any]:
        return _json_object(v, "attributesJSON")

    @field_validator("metadata", mode="before")
    @classmethod
    def _coerce_metadata(cls, v: Any) -> dict[str, Any]:
        return _json_object(v, "metadata")

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, v: Any) -> str | None:
        return _email(v)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, v: Any) -> str:
        return _enum_value(v, "active")


class Worker(_EntityModel):
    """
    @brief
    One worker record.

    @details
    Skills are stored as given and compared case-insensitively by the
    capacity checks. Available slots accept "[1,2]", "1,2" and "1-3".
    """

    id: str = Field("", validate_default=True)
    name: str = Field("", validate_default=True)
    skills: list[str] = Field(default_factory=list)
    available_slots: list[int] = Field(default_factory=list, alias="availableSlots")
    max_load_per_phase: int = Field(DEFAULT_MAX_LOAD_PER_PHASE, alias="maxLoadPerPhase")
    worker_group: str | None = Field(None, alias="workerGroup")
    qualification_level: int = Field(1, alias="qualificationLevel")
    hourly_rate: float | None = Field(None, alias="hourlyRate")
    availability: Literal["full-time", "part-time", "contract"] = "full-time"
    max_hours_per_week: float = Field(DEFAULT_MAX_HOURS_PER_WEEK, alias="maxHoursPerWeek")
    status: Literal["active", "inactive", "on-leave"] = "active"
    email: str | None = None
    preferences: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _check_id(cls, v: Any) -> str:
        return _required_text(v, "WorkerID is required")

    @field_validator("name", mode="before")
    @classmethod
    def _check_name(cls, v: Any) -> str:
        return _required_text(v, "WorkerName is required")

    @field_validator("skills", mode="before")
    @classmethod
    def _coerce_skills(cls, v: Any) -> list[str]:
        return split_list(v)

    @field_validator("available_slots", mode="before")
    @classmethod
    def _coerce_slots(cls, v: Any) -> list[int]:
        return parse_phase_list(v)

    @field_validator("max_load_per_phase", mode="before")
    @classmethod
    def _coerce_max_load(cls, v: Any) -> int:
        return clamp_int(v, default=DEFAULT_MAX_LOAD_PER_PHASE, lower=1)

    @field_validator("qualification_level", mode="before")
    @classmethod
    def _coerce_qualification(cls, v: Any) -> int:
        return clamp_int(
            v, default=1, lower=QUALIFICATION_RANGE[0], upper=QUALIFICATION_RANGE[1]
        )

    @field_validator("worker_group", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str | None:
        return _optional_text(v)

    @field_validator("hourly_rate", mode="before")
    @classmethod
    def _coerce_rate(cls, v: Any) -> float | None:
        return parse_number(v)

    @field_validator("max_hours_per_week", mode="before")
    @classmethod
    def _coerce_hours(cls, v: Any) -> float:
        # zero and unparseable fall back to the default week
        return parse_number(v) or DEFAULT_MAX_HOURS_PER_WEEK

    @field_validator("availability", mode="before")
    @classmethod
    def _coerce_availability(cls, v: Any) -> str:
        return _enum_value(v, "full-time")

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, v: Any) -> str:
        return _enum_value(v, "active")

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, v: Any) -> str | None:
        return _email(v)

    @field_validator("preferences", mode="before")
    @classmethod
    def _coerce_preferences(cls, v: Any) -> dict[str, Any]:
        return _json_object(v, "preferences")


class Task(_EntityModel):
    """
    @brief
    One task record.

    @details
    Preferred phases accept single values, comma lists, bracketed lists and
    inclusive "start-end" ranges. Dependencies, assignee and client are kept
    as ids; whether they resolve is decided by the cross-reference pass.
    """

    id: str = Field("", validate_default=True)
    title: str = Field("", validate_default=True)
    category: str | None = None
    duration: int = 1
    required_skills: list[str] = Field(default_factory=list, alias="requiredSkills")
    preferred_phases: list[int] = Field(default_factory=list, alias="preferredPhases")
    max_concurrent: int = Field(1, alias="maxConcurrent")
    description: str | None = None
    status: Literal["pending", "in-progress", "completed", "cancelled"] = "pending"
    priority: Literal["low", "medium", "high", "urgent"] = "medium"
    due_date: str | None = Field(None, alias="dueDate")
    assigned_to: str | None = Field(None, alias="assignedTo")
    client_id: str | None = Field(None, alias="clientId")
    created_at: str | None = Field(None, alias="createdAt")
    estimated_hours: float | None = Field(None, alias="estimatedHours")
    actual_hours: float | None = Field(None, alias="actualHours")
    dependencies: list[str] = Field(default_factory=list)
    attributes: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _check_id(cls, v: Any) -> str:
        return _required_text(v, "TaskID is required")

    @field_validator("title", mode="before")
    @classmethod
    def _check_title(cls, v: Any) -> str:
        return _required_text(v, "TaskName is required")

    @field_validator("duration", "max_concurrent", mode="before")
    @classmethod
    def _coerce_positive(cls, v: Any) -> int:
        return clamp_int(v, default=1, lower=1)

    @field_validator("required_skills", "dependencies", mode="before")
    @classmethod
    def _coerce_lists(cls, v: Any) -> list[str]:
        return split_list(v)

    @field_validator("preferred_phases", mode="before")
    @classmethod
    def _coerce_phases(cls, v: Any) -> list[int]:
        return parse_phase_list(v)

    @field_validator(
        "category", "description", "due_date", "assigned_to", "client_id", "created_at",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> str | None:
        return _optional_text(v)

    @field_validator("estimated_hours", "actual_hours", mode="before")
    @classmethod
    def _coerce_hours(cls, v: Any) -> float | None:
        return parse_number(v)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, v: Any) -> str:
        return _enum_value(v, "pending")

    @field_validator("priority", mode="before")
    @classmethod
    def _coerce_priority(cls, v: Any) -> str:
        return _enum_value(v, "medium")

    @field_validator("attributes", mode="before")
    @classmethod
    def _coerce_attributes(cls, v: Any) -> dict[str, Any]:
        return _json_object(v, "attributes")


# ------------------------------------------------------------
# Runtime configuration
# ------------------------------------------------------------
class _StrictBaseModel(BaseModel):
    """
    @brief
    Base model enforcing strict defaults for configuration contracts.

    @details
    Forbids unknown fields so typos in config.yaml surface as errors.
    """

    model_config = {
        "extra": "forbid",  # Reject unknown fields
        "populate_by_name": True,
    }


class LimitsConfig(_StrictBaseModel):
    """
    @brief
    Thresholds used by the raw-value field checks.
    """

    hourly_rate_max: float = Field(1000.0, gt=0.0, description="Unreasonable hourly rate")
    weekly_hours_max: float = Field(168.0, gt=0.0, description="Hours in a week (24x7)")
    hours_max: float = Field(10000.0, gt=0.0, description="Estimated/actual hours ceiling")
    due_date_min_year: int = Field(2000, ge=1, description="Earliest accepted due date year")
    due_date_max_years_ahead: int = Field(5, ge=0, description="Due date horizon in years")
    max_phase: int = Field(
        MAX_PHASE, ge=1, le=MAX_PHASE, description="Highest phase a phase range may reach"
    )


class HeaderConfig(_StrictBaseModel):
    auto_apply_threshold: float = Field(
        0.8,
        ge=0.0,
        le=1.0,
        description="Header suggestions at or above this confidence are applied automatically",
    )


class CrossCheckConfig(_StrictBaseModel):
    """
    @brief
    Controls the passes that need all three collections.

    @details
    cycle_policy "first" reports the first cycle reached from each unvisited
    root; "all" keeps searching and reports every back-edge cycle once.
    """

    cycle_policy: Literal["first", "all"] = "first"
    check_worker_overload: bool = True
    check_concurrency: bool = True


class ExportConfig(_StrictBaseModel):
    rules_version: str = Field("1.0", description="Version tag written to rules-config.json")
    write_report: bool = True
    valid_data_only: bool = Field(False, description="Export only rows without errors")


class Config(_StrictBaseModel):
    """
    @brief
    Represents the full runtime configuration loaded from config.yaml.
    """

    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    headers: HeaderConfig = Field(default_factory=HeaderConfig)
    cross_checks: CrossCheckConfig = Field(default_factory=CrossCheckConfig)
    export: ExportConfig = Field(default_factory=ExportConfig)
    output_dir: str | None = "data/output"


__all__ = [
    "Client",
    "Worker",
    "Task",
    "Config",
    "LimitsConfig",
    "HeaderConfig",
    "CrossCheckConfig",
    "ExportConfig",
]
