"""Aggregate facts about a roster, used to judge which clues are obvious.

Pure functions with no external dependencies.
"""

from dataclasses import dataclass, field

from secret_santa.domain.models import ExclusionConstraint, Gender, Participant

YEAR_SKEW_THRESHOLD = 0.70


@dataclass(frozen=True)
class PopulationAnalysis:
    """Read-only snapshot of a roster and its exclusions."""

    total: int
    year_histogram: dict[int, int] = field(default_factory=dict)
    male_count: int = 0
    female_count: int = 0
    other_count: int = 0
    modal_year: int | None = None
    modal_year_count: int = 0
    unique_years: int = 0
    is_year_distribution_skewed: bool = False
    is_gender_balanced: bool = True
    exclusion_count: int = 0
    exclusions_in_modal_year: int = 0

    @property
    def counted_gender_total(self) -> int:
        return self.male_count + self.female_count

    @property
    def dominant_gender_share(self) -> float:
        """Share of the whole roster held by the larger of male/female."""
        if self.total == 0:
            return 0.0
        return max(self.male_count, self.female_count) / self.total

    @property
    def exclusion_modal_year_share(self) -> float:
        if self.exclusion_count == 0:
            return 0.0
        return self.exclusions_in_modal_year / self.exclusion_count


def analyze(
    participants: list[Participant],
    exclusions: list[ExclusionConstraint] | None = None,
) -> PopulationAnalysis:
    """Compute a PopulationAnalysis.

    Rules:
        - modal year ties resolve to the first year encountered in roster order
        - skewed when modal-year count / total > 0.70
        - gender balanced when |male - female| <= 1 (other is not counted)
        - an exclusion is "in the modal year" when both named participants
          arrived that year
    """
    exclusions = exclusions or []

    histogram: dict[int, int] = {}
    gender_counts = {g: 0 for g in Gender}
    for p in participants:
        histogram[p.year_moved] = histogram.get(p.year_moved, 0) + 1
        gender_counts[p.gender] += 1

    modal_year: int | None = None
    modal_count = 0
    for year, count in histogram.items():
        if count > modal_count:
            modal_year, modal_count = year, count

    total = len(participants)
    skewed = total > 0 and modal_count / total > YEAR_SKEW_THRESHOLD

    years_by_name = {p.name: p.year_moved for p in participants}
    in_modal_year = 0
    if modal_year is not None:
        for e in exclusions:
            if years_by_name.get(e.participant1) == modal_year and years_by_name.get(e.participant2) == modal_year:
                in_modal_year += 1

    male = gender_counts[Gender.MALE]
    female = gender_counts[Gender.FEMALE]

    return PopulationAnalysis(
        total=total,
        year_histogram=histogram,
        male_count=male,
        female_count=female,
        other_count=gender_counts[Gender.OTHER],
        modal_year=modal_year,
        modal_year_count=modal_count,
        unique_years=len(histogram),
        is_year_distribution_skewed=skewed,
        is_gender_balanced=abs(male - female) <= 1,
        exclusion_count=len(exclusions),
        exclusions_in_modal_year=in_modal_year,
    )
