"""Randomized constrained draw of giver -> receiver assignments.

A draw is a derangement of the participants (nobody gives to themself) that
also avoids every exclusion pair. Attempts are greedy over a Fisher-Yates
shuffled receiver pool; failed attempts are retried with a fresh shuffle up to
max_attempts, after which one relaxed attempt (self-avoidance only) is
accepted. The relaxation is reported on DrawOutcome rather than hidden.
"""

import random
from dataclasses import dataclass
from enum import StrEnum

import structlog

from secret_santa.core.exceptions import AssignmentSearchExhausted, InsufficientParticipantsError
from secret_santa.domain.encoder import Assignment, AssignmentEncoder
from secret_santa.domain.models import ExclusionConstraint, Participant

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 100


class SearchState(StrEnum):
    """Lifecycle of one draw."""

    SEARCHING = "searching"
    SUCCEEDED = "succeeded"
    EXHAUSTED_RETRYING = "exhausted_retrying"
    FALLBACK_APPLIED = "fallback_applied"


@dataclass(frozen=True)
class DrawOutcome:
    """Result of a draw. Only the sealed token leaves the engine."""

    token: str
    constraints_relaxed: bool
    attempts: int
    state: SearchState


class _AttemptFailed(Exception):
    """A single greedy pass stranded a giver with no valid receiver."""


def _is_valid_pair(
    giver: Participant,
    receiver: Participant,
    exclusions: list[ExclusionConstraint],
    forbid_same_gender: bool,
) -> bool:
    if giver.id == receiver.id:
        return False
    if forbid_same_gender and giver.gender == receiver.gender:
        return False
    return not any(e.matches(giver.name, receiver.name) for e in exclusions)


def _attempt(
    participants: list[Participant],
    exclusions: list[ExclusionConstraint],
    forbid_same_gender: bool,
    rng: random.Random,
) -> list[Assignment]:
    receivers = list(participants)
    rng.shuffle(receivers)

    assignments: list[Assignment] = []
    for giver in participants:
        for i, receiver in enumerate(receivers):
            if _is_valid_pair(giver, receiver, exclusions, forbid_same_gender):
                del receivers[i]
                break
        else:
            raise _AttemptFailed(giver.id)

        assignments.append(Assignment(giver_id=giver.id, receiver_id=receiver.id))

    return assignments


def _relaxed_attempt(participants: list[Participant], rng: random.Random) -> list[Assignment]:
    """Self-avoidance-only attempt that always completes.

    A greedy pass can only get stuck on the last giver, when the single
    receiver left is that giver. That case is repaired by handing the last
    giver an earlier giver's receiver and pointing the earlier giver at them.
    """
    receivers = list(participants)
    rng.shuffle(receivers)

    assignments: list[Assignment] = []
    for giver in participants:
        for i, receiver in enumerate(receivers):
            if receiver.id != giver.id:
                del receivers[i]
                assignments.append(Assignment(giver_id=giver.id, receiver_id=receiver.id))
                break
        else:
            swap_index = rng.randrange(len(assignments))
            donor = assignments[swap_index]
            assignments[swap_index] = Assignment(giver_id=donor.giver_id, receiver_id=giver.id)
            assignments.append(Assignment(giver_id=giver.id, receiver_id=donor.receiver_id))

    return assignments


class AssignmentEngine:
    """Draws assignments and seals them with the injected encoder."""

    def __init__(
        self,
        encoder: AssignmentEncoder,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        rng: random.Random | None = None,
    ):
        self.encoder = encoder
        self.max_attempts = max_attempts
        self.rng = rng or random.Random()

    def draw(
        self,
        participants: list[Participant],
        exclusions: list[ExclusionConstraint] | None = None,
        forbid_same_gender: bool = False,
    ) -> DrawOutcome:
        """Draw a derangement honoring exclusions when possible.

        Raises:
            InsufficientParticipantsError: fewer than two participants
        """
        if len(participants) < 2:
            raise InsufficientParticipantsError(len(participants))

        exclusions = list(exclusions or [])
        state = SearchState.SEARCHING

        try:
            assignments, attempts = self._search(participants, exclusions, forbid_same_gender)
            state = SearchState.SUCCEEDED
        except AssignmentSearchExhausted as e:
            state = SearchState.EXHAUSTED_RETRYING
            logger.warning(
                "assignment_constraints_relaxed",
                participant_count=len(participants),
                exclusion_count=len(exclusions),
                forbid_same_gender=forbid_same_gender,
                attempts=e.attempts,
            )
            assignments = _relaxed_attempt(participants, self.rng)
            attempts = e.attempts + 1
            state = SearchState.FALLBACK_APPLIED

        token = self.encoder.encode(assignments)
        return DrawOutcome(
            token=token,
            constraints_relaxed=state == SearchState.FALLBACK_APPLIED,
            attempts=attempts,
            state=state,
        )

    def generate(
        self,
        participants: list[Participant],
        exclusions: list[ExclusionConstraint] | None = None,
    ) -> str:
        """Draw and return only the sealed token."""
        return self.draw(participants, exclusions).token

    def _search(
        self,
        participants: list[Participant],
        exclusions: list[ExclusionConstraint],
        forbid_same_gender: bool,
    ) -> tuple[list[Assignment], int]:
        for attempt in range(1, self.max_attempts + 1):
            try:
                return _attempt(participants, exclusions, forbid_same_gender, self.rng), attempt
            except _AttemptFailed:
                continue
        raise AssignmentSearchExhausted(self.max_attempts)


def is_valid_derangement(assignments: list[Assignment], participants: list[Participant]) -> bool:
    """True iff every participant gives exactly once and receives exactly once.

    Also rejects self-assignments and ids outside the participant set.
    """
    participant_ids = [p.id for p in participants]
    givers = [a.giver_id for a in assignments]
    receivers = [a.receiver_id for a in assignments]

    if any(a.giver_id == a.receiver_id for a in assignments):
        return False

    return sorted(givers) == sorted(participant_ids) and sorted(receivers) == sorted(participant_ids)
