"""Clue generation for party-time guessing.

Clues describe aggregate patterns of the draw (who gives to whom by gender,
by arrival year, by name shape) without ever naming anyone. Candidates from
the primary generators are run through an obviousness filter that drops
statements a guest could invert using public facts about the roster and the
known exclusion pairs. When too few survive, a backfill tier of broader
statistics tops the list up, passing through the same filter.

The filter is heuristic and deliberately conservative: rejecting a safe clue
is acceptable, leaking a deducible one is not.
"""

import random
from collections import Counter
from dataclasses import dataclass

import structlog

from secret_santa.domain.encoder import Assignment, AssignmentEncoder
from secret_santa.domain.models import (
    ClueCategory,
    ClueDifficulty,
    ClueStatement,
    ExclusionConstraint,
    Gender,
    Participant,
)
from secret_santa.domain.population import PopulationAnalysis, analyze

logger = structlog.get_logger(__name__)

DEFAULT_TARGET_COUNT = 10
MINIMAL_TARGET_COUNT = 3

# Obviousness thresholds (heuristic)
GENDER_DOMINANCE_THRESHOLD = 0.80
SMALL_GROUP_SIZE = 4
MAX_REVEALING_UNIQUE_YEARS = 2
EXCLUSION_CONCENTRATION_THRESHOLD = 0.50

# Generator gates
MIN_ENDPOINT_YEARS = 3
BACKFILL_MIN_PARTICIPANTS = 5

VOWELS = frozenset("aeiouy")

_GENDER_WORDS = {
    Gender.MALE: ("man", "men"),
    Gender.FEMALE: ("woman", "women"),
}


@dataclass(frozen=True)
class _Edge:
    giver: Participant
    receiver: Participant

    @property
    def year_gap(self) -> int:
        return abs(self.giver.year_moved - self.receiver.year_moved)


def _resolve_edges(assignments: list[Assignment], participant_map: dict[str, Participant]) -> list[_Edge]:
    """Pair up assignment ids with participant records, skipping unknown ids."""
    edges = []
    for a in assignments:
        giver = participant_map.get(a.giver_id)
        receiver = participant_map.get(a.receiver_id)
        if giver is None or receiver is None:
            continue
        edges.append(_Edge(giver, receiver))
    return edges


def _clue(text: str, category: ClueCategory, difficulty: ClueDifficulty, rule: str) -> ClueStatement:
    return ClueStatement(text=text, category=category, difficulty=difficulty, rule=rule)


def _people_phrase(count: int, predicate: str) -> str:
    """'No one is X' / 'Exactly one person is X' / 'N people are X'."""
    if count == 0:
        return f"No one is {predicate}"
    if count == 1:
        return f"Exactly one person is {predicate}"
    return f"{count} people are {predicate}"


# ──────────────────────────────────────────────────────────────────────────────
# Primary generators
# ──────────────────────────────────────────────────────────────────────────────


def gender_pattern_clues(edges: list[_Edge], participants: list[Participant]) -> list[ClueStatement]:
    """One clue per directed male/female pair count.

    Zero counts are phrased as "No ..." at medium difficulty, positive counts
    at easy. A pair is skipped when the roster cannot produce it at all
    (e.g. "no men give to other men" with a single man is not a clue).
    """
    members = {g: sum(1 for p in participants if p.gender == g) for g in _GENDER_WORDS}

    tallies: dict[tuple[Gender, Gender], int] = {
        (Gender.MALE, Gender.FEMALE): 0,
        (Gender.FEMALE, Gender.MALE): 0,
        (Gender.MALE, Gender.MALE): 0,
        (Gender.FEMALE, Gender.FEMALE): 0,
    }
    for edge in edges:
        key = (edge.giver.gender, edge.receiver.gender)
        if key in tallies:
            tallies[key] += 1

    clues = []
    for (giver_gender, receiver_gender), count in tallies.items():
        same = giver_gender == receiver_gender
        if members[giver_gender] < (2 if same else 1) or members[receiver_gender] < 1:
            continue

        one, many = _GENDER_WORDS[giver_gender]
        receiver_one, receiver_many = _GENDER_WORDS[receiver_gender]
        rule = f"{giver_gender}_to_{receiver_gender}"

        if same:
            target_one, target_many = f"another {receiver_one}", f"other {receiver_many}"
        else:
            target_one, target_many = f"a {receiver_one}", receiver_many

        if count == 0:
            clues.append(_clue(
                f"No {many} are giving gifts to {target_many}",
                ClueCategory.GENDER, ClueDifficulty.MEDIUM, f"no_{rule}",
            ))
        elif count == 1:
            clues.append(_clue(
                f"Exactly one {one} is giving a gift to {target_one}",
                ClueCategory.GENDER, ClueDifficulty.EASY, rule,
            ))
        else:
            clues.append(_clue(
                f"{count} {many} are giving gifts to {target_many}",
                ClueCategory.GENDER, ClueDifficulty.EASY, rule,
            ))

    return clues


def year_pattern_clues(edges: list[_Edge], participants: list[Participant]) -> list[ClueStatement]:
    """Clues about arrival years: the unique extremes, same-year and cross-year flows."""
    clues: list[ClueStatement] = []
    if not participants or not edges:
        return clues

    years = [p.year_moved for p in participants]
    earliest, latest = min(years), max(years)
    holders_by_year = Counter(years)
    earliest_holders = [p for p in participants if p.year_moved == earliest]
    latest_holders = [p for p in participants if p.year_moved == latest]

    if len(earliest_holders) == 1:
        edge = next((e for e in edges if e.giver.id == earliest_holders[0].id), None)
        # The receiver's year must be shared, otherwise the clue names them.
        if edge is not None and edge.receiver.year_moved != earliest and holders_by_year[edge.receiver.year_moved] > 1:
            clues.append(_clue(
                f"The longest-standing member of the group (since {earliest}) is giving to "
                f"someone who arrived in {edge.receiver.year_moved}",
                ClueCategory.YEAR, ClueDifficulty.MEDIUM, "earliest_giver",
            ))

    if len(latest_holders) == 1:
        edge = next((e for e in edges if e.receiver.id == latest_holders[0].id), None)
        if edge is not None and edge.giver.year_moved != latest and holders_by_year[edge.giver.year_moved] > 1:
            clues.append(_clue(
                f"The newest member of the group (arrived {latest}) is receiving from "
                f"someone who arrived in {edge.giver.year_moved}",
                ClueCategory.YEAR, ClueDifficulty.MEDIUM, "latest_receiver",
            ))

    endpoint_years = {e.giver.year_moved for e in edges} | {e.receiver.year_moved for e in edges}
    if len(endpoint_years) < MIN_ENDPOINT_YEARS:
        return clues

    same_year = sum(1 for e in edges if e.giver.year_moved == e.receiver.year_moved)
    older_to_newer = sum(1 for e in edges if e.giver.year_moved < e.receiver.year_moved)
    newer_to_older = sum(1 for e in edges if e.giver.year_moved > e.receiver.year_moved)

    same_year_difficulty = {0: ClueDifficulty.EASY, 1: ClueDifficulty.MEDIUM}.get(same_year, ClueDifficulty.HARD)
    clues.append(_clue(
        _people_phrase(same_year, "giving a gift to someone who arrived in the same year as them"),
        ClueCategory.YEAR, same_year_difficulty, "same_year",
    ))

    if older_to_newer == 0:
        text = "No longtime members are giving gifts to newer arrivals"
    else:
        text = _people_phrase(older_to_newer, "giving a gift to someone who arrived after them")
    clues.append(_clue(
        text,
        ClueCategory.YEAR,
        ClueDifficulty.HARD if older_to_newer > 1 else ClueDifficulty.MEDIUM,
        "older_to_newer",
    ))

    if newer_to_older == 0:
        text = "No newer arrivals are giving gifts to longtime members"
    else:
        text = _people_phrase(newer_to_older, "giving a gift to someone who arrived before them")
    clues.append(_clue(
        text,
        ClueCategory.YEAR,
        ClueDifficulty.HARD if newer_to_older > 1 else ClueDifficulty.MEDIUM,
        "newer_to_older",
    ))

    return clues


def specific_pattern_clues(
    edges: list[_Edge],
    analysis: PopulationAnalysis,
    rng: random.Random,
) -> list[ClueStatement]:
    """Anonymized statements about one sampled pair and the middle year band."""
    clues: list[ClueStatement] = []

    giver_years = {e.giver.year_moved for e in edges}
    receiver_years = {e.receiver.year_moved for e in edges}
    cross_year = [e for e in edges if e.giver.year_moved != e.receiver.year_moved]

    if len(giver_years) >= 2 and len(receiver_years) >= 2 and cross_year:
        edge = rng.choice(cross_year)
        giver_year, receiver_year = edge.giver.year_moved, edge.receiver.year_moved
        # Both years held by a single person would name the pair outright.
        pinned = (
            analysis.year_histogram.get(giver_year, 0) == 1
            and analysis.year_histogram.get(receiver_year, 0) == 1
        )
        if edge.year_gap > 1 and not pinned:
            clues.append(_clue(
                f"Someone who arrived in {giver_year} is giving to someone who arrived in {receiver_year}",
                ClueCategory.SPECIFIC, ClueDifficulty.HARD, "sampled_year_gap",
            ))

    years = sorted(analysis.year_histogram)
    if len(years) >= 3:
        low, high = years[0] + 1, years[-1] - 1
        band = f"between {low} and {high}"
        outsiders = f"before {low} or after {high}"
        into_band = sum(
            1 for e in edges
            if low <= e.receiver.year_moved <= high and not low <= e.giver.year_moved <= high
        )
        if into_band == 0:
            text = f"Everyone giving to someone who arrived {band} also arrived in that range"
        elif into_band == 1:
            text = f"Exactly one person who arrived {outsiders} is giving to someone who arrived {band}"
        else:
            text = f"{into_band} people who arrived {outsiders} are giving to someone who arrived {band}"
        clues.append(_clue(
            text,
            ClueCategory.SPECIFIC,
            ClueDifficulty.HARD if into_band > 1 else ClueDifficulty.MEDIUM,
            "middle_year_band",
        ))

    return clues


# ──────────────────────────────────────────────────────────────────────────────
# Backfill generators
# ──────────────────────────────────────────────────────────────────────────────


def _median_year(participants: list[Participant]) -> int:
    years = sorted(p.year_moved for p in participants)
    return years[len(years) // 2]


def backfill_clues(edges: list[_Edge], participants: list[Participant]) -> list[ClueStatement]:
    """Second-tier clues, safe regardless of skew apart from size gates."""
    clues: list[ClueStatement] = []
    if not edges or not participants:
        return clues

    cross_gender = sum(1 for e in edges if e.giver.gender != e.receiver.gender)
    if cross_gender > 0:
        verb = "person is" if cross_gender == 1 else "people are"
        clues.append(_clue(
            f"{cross_gender} {verb} giving gifts to someone of a different gender",
            ClueCategory.GENDER, ClueDifficulty.EASY, "cross_gender",
        ))

    gaps = [e.year_gap for e in edges if e.year_gap > 0]
    if gaps:
        average_gap = int(sum(gaps) / len(gaps) + 0.5)
        unit = "year" if average_gap == 1 else "years"
        clues.append(_clue(
            f"The average gap between when givers and receivers arrived is {average_gap} {unit}",
            ClueCategory.YEAR, ClueDifficulty.MEDIUM, "average_year_gap",
        ))

    median = _median_year(participants)
    veterans = sum(1 for e in edges if e.giver.year_moved < median <= e.receiver.year_moved)
    if veterans > 0:
        noun = "veteran (arrived before {m}) is" if veterans == 1 else "veterans (arrived before {m}) are"
        clues.append(_clue(
            f"{veterans} {noun.format(m=median)} giving to newcomers",
            ClueCategory.YEAR, ClueDifficulty.HARD, "veterans_to_newcomers",
        ))

    latest = max(p.year_moved for p in participants)
    recent_ids = {p.id for p in participants if p.year_moved >= latest - 1}
    if len(recent_ids) >= 2:
        recent_receiving = sum(1 for e in edges if e.receiver.id in recent_ids and e.giver.id not in recent_ids)
        if recent_receiving > 0:
            clues.append(_clue(
                f"{recent_receiving} of the most recent arrivals (since {latest - 1}) "
                f"{'is' if recent_receiving == 1 else 'are'} receiving from someone who has been around longer",
                ClueCategory.YEAR, ClueDifficulty.HARD, "recent_arrivals_receiving",
            ))

    if len(participants) >= BACKFILL_MIN_PARTICIPANTS:
        alphabetical = sum(1 for e in edges if e.giver.name.casefold() < e.receiver.name.casefold())
        clues.append(_clue(
            _people_phrase(alphabetical, "giving to someone whose name comes later in the alphabet"),
            ClueCategory.COUNT, ClueDifficulty.MEDIUM, "alphabetical_order",
        ))

        longer_name = sum(1 for e in edges if len(e.receiver.name) > len(e.giver.name))
        clues.append(_clue(
            _people_phrase(longer_name, "giving to someone with a longer name than their own"),
            ClueCategory.COUNT, ClueDifficulty.MEDIUM, "name_length_order",
        ))

        domains = [p.email_domain for p in participants if p.email_domain]
        if len(domains) != len(set(domains)):
            shared = sum(
                1 for e in edges
                if e.giver.email_domain and e.giver.email_domain == e.receiver.email_domain
            )
            clues.append(_clue(
                _people_phrase(shared, "giving to someone with the same email domain"),
                ClueCategory.COUNT, ClueDifficulty.HARD, "shared_email_domain",
            ))

        vowel_counts = [sum(1 for ch in e.receiver.name.lower() if ch in VOWELS) for e in edges]
        average_vowels = sum(vowel_counts) / len(vowel_counts)
        clues.append(_clue(
            f"Gift receivers have an average of {average_vowels:.1f} vowels in their names",
            ClueCategory.COUNT, ClueDifficulty.EASY, "name_vowels",
        ))

    clues.append(_clue(
        f"{len(participants)} people are taking part in the exchange",
        ClueCategory.COUNT, ClueDifficulty.EASY, "population_size",
    ))

    return clues


# ──────────────────────────────────────────────────────────────────────────────
# Obviousness filter
# ──────────────────────────────────────────────────────────────────────────────


def _pair_is_excluded(names: list[str], exclusions: list[ExclusionConstraint]) -> bool:
    return len(names) == 2 and any(e.matches(names[0], names[1]) for e in exclusions)


def is_obvious(
    clue: ClueStatement,
    analysis: PopulationAnalysis,
    exclusions: list[ExclusionConstraint],
    participants: list[Participant],
) -> bool:
    """True when a clue could be inverted from public roster facts.

    Rules:
        - year/specific clues: at most 2 distinct years on the roster
        - year/specific clues: year distribution skewed (> 70% one year) and
          at least half the exclusions fall inside that majority year
        - gender clues: one gender above 80% of the roster
        - gender clues: any exclusion and at most 4 counted-gender members
        - "no same-gender giving" clues: that gender has exactly two members
          and they are an excluded pair
        - population-size statements: at most 4 participants
    """
    if clue.category in (ClueCategory.YEAR, ClueCategory.SPECIFIC):
        if analysis.unique_years <= MAX_REVEALING_UNIQUE_YEARS:
            return True
        if (
            analysis.is_year_distribution_skewed
            and analysis.exclusion_modal_year_share >= EXCLUSION_CONCENTRATION_THRESHOLD
        ):
            return True

    if clue.category == ClueCategory.GENDER:
        if analysis.dominant_gender_share > GENDER_DOMINANCE_THRESHOLD:
            return True
        if analysis.exclusion_count > 0 and analysis.counted_gender_total <= SMALL_GROUP_SIZE:
            return True
        for gender in _GENDER_WORDS:
            if clue.rule == f"no_{gender}_to_{gender}":
                names = [p.name for p in participants if p.gender == gender]
                if _pair_is_excluded(names, exclusions):
                    return True

    if clue.rule == "population_size" and analysis.total <= SMALL_GROUP_SIZE:
        return True

    return False


# ──────────────────────────────────────────────────────────────────────────────
# Engine
# ──────────────────────────────────────────────────────────────────────────────


class ClueEngine:
    """Produces a fixed-size, shuffled, filtered list of clues for a draw."""

    def __init__(
        self,
        encoder: AssignmentEncoder,
        target_count: int = DEFAULT_TARGET_COUNT,
        rng: random.Random | None = None,
    ):
        self.encoder = encoder
        self.target_count = target_count
        self.rng = rng or random.Random()

    def generate_clues(
        self,
        token: str,
        participants: list[Participant],
        exclusions: list[ExclusionConstraint] | None = None,
    ) -> list[ClueStatement]:
        """Decode the draw and return up to target_count clues.

        Returns fewer than target_count when the roster cannot support more;
        never raises for that.

        Raises:
            DecodeError: the token cannot be unsealed
        """
        exclusions = list(exclusions or [])
        assignments = self.encoder.decode(token)
        participant_map = {p.id: p for p in participants}
        edges = _resolve_edges(assignments, participant_map)
        analysis = analyze(participants, exclusions)

        candidates = [
            *gender_pattern_clues(edges, participants),
            *year_pattern_clues(edges, participants),
            *specific_pattern_clues(edges, analysis, self.rng),
        ]
        clues = [c for c in candidates if not is_obvious(c, analysis, exclusions, participants)]
        self.rng.shuffle(clues)

        backfilled = 0
        if len(clues) < self.target_count:
            seen = {c.text for c in clues}
            extras = [
                c for c in backfill_clues(edges, participants)
                if not is_obvious(c, analysis, exclusions, participants)
            ]
            self.rng.shuffle(extras)
            for clue in extras:
                if clue.text in seen:
                    continue
                seen.add(clue.text)
                clues.append(clue)
                backfilled += 1

        result = clues[:self.target_count]
        logger.info(
            "clues_generated",
            candidate_count=len(candidates),
            backfilled=backfilled,
            returned=len(result),
            target_count=self.target_count,
        )
        return result
