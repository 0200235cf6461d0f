"""Domain records shared by the assignment and clue engines.

Pure data, no I/O. Participants and exclusions are owned by the caller and
never mutated here.
"""

from dataclasses import dataclass
from enum import StrEnum


class Gender(StrEnum):
    """Closed set of gender categories collected at sign-up."""

    MALE = "male"
    FEMALE = "female"
    OTHER = "other"

    @classmethod
    def parse(cls, value: "str | Gender") -> "Gender":
        """Case-insensitive lookup; unknown values fall back to OTHER."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class Participant:
    """One person taking part in an exchange."""

    id: str
    name: str
    gender: Gender
    year_moved: int
    email: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.gender, Gender):
            object.__setattr__(self, "gender", Gender.parse(self.gender))

    @property
    def email_domain(self) -> str:
        _, _, domain = self.email.rpartition("@")
        return domain.lower()


@dataclass(frozen=True)
class ExclusionConstraint:
    """Two participants (by display name) who must not draw each other."""

    participant1: str
    participant2: str
    reason: str | None = None

    def matches(self, name_a: str, name_b: str) -> bool:
        """True when the pair is (name_a, name_b) in either direction."""
        return (name_a, name_b) in (
            (self.participant1, self.participant2),
            (self.participant2, self.participant1),
        )


class ClueCategory(StrEnum):
    GENDER = "gender"
    YEAR = "year"
    COUNT = "count"
    SPECIFIC = "specific"


class ClueDifficulty(StrEnum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


@dataclass(frozen=True)
class ClueStatement:
    """A party-time hint about the draw.

    rule names the generator rule that produced the clue; the obviousness
    filter keys off it for rules that need more than the category.
    """

    text: str
    category: ClueCategory
    difficulty: ClueDifficulty
    rule: str = ""
