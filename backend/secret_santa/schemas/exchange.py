"""Exchange Pydantic schemas: contracts for roster intake and clue selection."""

from datetime import date
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

MIN_PARTICIPANTS = 3
MAX_PARTICIPANTS = 30
MAX_SELECTED_CLUES = 10


class ParticipantInput(BaseModel):
    """A participant as entered by the organizer."""

    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    gender: Literal["male", "female", "other"]
    year_moved: int = Field(..., ge=1900)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("Name cannot be empty or whitespace-only")
        return stripped

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("gender", mode="before")
    @classmethod
    def normalize_gender(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("year_moved")
    @classmethod
    def not_in_future(cls, v: int) -> int:
        if v > date.today().year:
            raise ValueError("Arrival year cannot be in the future")
        return v


class ExclusionInput(BaseModel):
    """Two participants (by name) who must not draw each other."""

    participant1: str
    participant2: str
    reason: str | None = None


class CreateExchangeRequest(BaseModel):
    """Roster and exclusions for a new exchange."""

    participants: list[ParticipantInput] = Field(
        ..., min_length=MIN_PARTICIPANTS, max_length=MAX_PARTICIPANTS
    )
    exclusions: list[ExclusionInput] = Field(default_factory=list)
    forbid_same_gender: bool = False

    @model_validator(mode="after")
    def check_names(self) -> "CreateExchangeRequest":
        """Names must be unique; exclusions must name two different participants."""
        names = [p.name for p in self.participants]
        if len(set(names)) != len(names):
            raise ValueError("Participant names must be unique")

        known = set(names)
        for exclusion in self.exclusions:
            if exclusion.participant1 == exclusion.participant2:
                raise ValueError(f"Exclusion pairs {exclusion.participant1!r} with themself")
            missing = {exclusion.participant1, exclusion.participant2} - known
            if missing:
                raise ValueError(f"Exclusion names unknown participants: {sorted(missing)}")
        return self


class ClueSelectionRequest(BaseModel):
    """Indices of generated clues chosen for the reminder email."""

    selected: list[int] = Field(..., min_length=1, max_length=MAX_SELECTED_CLUES)

    @field_validator("selected")
    @classmethod
    def unique_non_negative(cls, v: list[int]) -> list[int]:
        if any(i < 0 for i in v):
            raise ValueError("Clue indices must be non-negative")
        if len(set(v)) != len(v):
            raise ValueError("Clue indices must be unique")
        return v
