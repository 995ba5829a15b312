"""
Candidate search payload, query grammar and result records.

A search request (from an @@SEARCH line or the HTTP endpoint) becomes one
conjunctive Bullhorn Lucene query:

    title:"SRE" AND (skills:"Go" OR skills:"K8s") AND address.city:"London"
        AND employmentPreference:"senior" AND isDeleted:false
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


MIN_RESULTS = 1
MAX_RESULTS = 20
DEFAULT_RESULTS = 5

CANDIDATE_FIELDS = "id,firstName,lastName,name,address(city,state),employmentPreference,skills,dateLastModified"


class Seniority(str, Enum):
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"


def clamp_result_count(top_n: int) -> int:
    return max(MIN_RESULTS, min(MAX_RESULTS, top_n))


class SearchCommand(BaseModel):
    """Validated candidate search request. Unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")

    job_title: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    location: Optional[str] = None
    seniority: Optional[Seniority] = None
    top_n: int = DEFAULT_RESULTS

    @field_validator("job_title", "location", "seniority", mode="before")
    @classmethod
    def _blank_as_missing(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, str):
            if not value.strip():
                return None
            if info.field_name == "seniority":
                return value.strip().lower()
        return value

    @field_validator("skills", mode="before")
    @classmethod
    def _null_skills(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("skills")
    @classmethod
    def _drop_blank_skills(cls, value: List[str]) -> List[str]:
        return [s.strip() for s in value if s.strip()]

    @field_validator("top_n", mode="before")
    @classmethod
    def _null_top_n(cls, value: Any) -> Any:
        return DEFAULT_RESULTS if value is None else value

    @field_validator("top_n")
    @classmethod
    def _clamp_top_n(cls, value: int) -> int:
        return clamp_result_count(value)


def _quote(value: str) -> str:
    escaped = value.strip().replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_candidate_query(command: SearchCommand) -> str:
    """Build the Bullhorn query string for a search command."""
    parts: List[str] = []
    if command.job_title:
        parts.append(f"title:{_quote(command.job_title)}")
    if command.skills:
        parts.append("(" + " OR ".join(f"skills:{_quote(s)}" for s in command.skills) + ")")
    if command.location:
        parts.append(f"address.city:{_quote(command.location)}")
    if command.seniority:
        parts.append(f"employmentPreference:{_quote(command.seniority.value)}")
    parts.append("isDeleted:false")
    return " AND ".join(parts)


class CandidateResult(BaseModel):
    """One candidate as handed to the assistant and the HTTP API (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    id: int | str
    name: str
    city: Optional[str] = None
    state: Optional[str] = None
    employment_preference: Optional[Any] = Field(None, alias="employmentPreference")
    skills: Optional[List[str]] = None
    last_updated: Optional[Any] = Field(None, alias="lastUpdated")


def _skill_names(raw: Any) -> Optional[List[str]]:
    """Bullhorn returns skills as a string, a list, or a to-many {"data": [...]} block."""
    if not raw:
        return None
    if isinstance(raw, str):
        return [s.strip() for s in raw.split(",") if s.strip()] or None
    if isinstance(raw, dict):
        raw = raw.get("data") or []
    names = []
    for item in raw:
        if isinstance(item, dict):
            item = item.get("name")
        if isinstance(item, str) and item.strip():
            names.append(item.strip())
    return names or None


def normalize_candidate(raw: Dict[str, Any]) -> Optional[CandidateResult]:
    """Map a raw Candidate record to a result; records without an id are dropped."""
    candidate_id = raw.get("id")
    if candidate_id is None:
        return None

    name = raw.get("name") or f"{raw.get('firstName') or ''} {raw.get('lastName') or ''}".strip()
    address = raw.get("address") or {}
    return CandidateResult(
        id=candidate_id,
        name=name,
        city=address.get("city") or None,
        state=address.get("state") or None,
        employment_preference=raw.get("employmentPreference") or None,
        skills=_skill_names(raw.get("skills")),
        last_updated=raw.get("dateLastModified") or None,
    )
