"""ExchangeService: wires roster intake, the draw, and clue generation together.

Persistence and email delivery live with the caller; this seam hands back the
sealed token, the clues, and per-giver recipient ids for delivery.
"""

import random
import uuid
from dataclasses import dataclass

import structlog

from secret_santa.core.config import Settings, get_settings
from secret_santa.core.exceptions import SecretSantaError
from secret_santa.core.logging import bind_exchange_context
from secret_santa.domain.assignment import AssignmentEngine
from secret_santa.domain.clues import ClueEngine
from secret_santa.domain.encoder import AssignmentEncoder
from secret_santa.domain.models import ClueStatement, ExclusionConstraint, Participant
from secret_santa.schemas.exchange import ClueSelectionRequest, CreateExchangeRequest

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ExchangeDraw:
    """Everything the caller persists after creating an exchange."""

    exchange_id: str
    participants: list[Participant]
    exclusions: list[ExclusionConstraint]
    token: str
    constraints_relaxed: bool
    clues: list[ClueStatement]


@dataclass(frozen=True)
class RecipientNotice:
    """Giver and the receiver they should be told about."""

    giver: Participant
    receiver: Participant


class ExchangeService:
    """Service layer for gift-exchange draws.

    Builds one encoder from settings and shares it between the assignment and
    clue engines.
    """

    def __init__(self, settings: Settings | None = None, rng: random.Random | None = None):
        """Initialize with dependency injection.

        Args:
            settings: Application settings (defaults to get_settings())
            rng: Random source shared by both engines (injectable for testing)
        """
        self.settings = settings or get_settings()
        if self.settings.uses_default_secret:
            logger.warning(
                "default_assignment_secret_in_use",
                message="ASSIGNMENT_SECRET is not set; tokens are sealed with the built-in key",
            )

        self.encoder = AssignmentEncoder(self.settings.assignment_secret)
        self.assignment_engine = AssignmentEngine(
            self.encoder,
            max_attempts=self.settings.max_assignment_attempts,
            rng=rng,
        )
        self.clue_engine = ClueEngine(
            self.encoder,
            target_count=self.settings.clue_target_count,
            rng=rng,
        )

    def create_exchange(self, request: CreateExchangeRequest) -> ExchangeDraw:
        """Turn a validated roster into a sealed draw plus clues.

        Raises:
            InsufficientParticipantsError: propagated from the assignment engine
        """
        exchange_id = str(uuid.uuid4())
        participants = [
            Participant(
                id=str(uuid.uuid4()),
                name=p.name,
                gender=p.gender,
                year_moved=p.year_moved,
                email=p.email,
            )
            for p in request.participants
        ]
        exclusions = [
            ExclusionConstraint(e.participant1, e.participant2, e.reason)
            for e in request.exclusions
        ]

        with bind_exchange_context(exchange_id):
            outcome = self.assignment_engine.draw(
                participants, exclusions, forbid_same_gender=request.forbid_same_gender
            )
            if outcome.constraints_relaxed:
                logger.warning("exchange_exclusions_not_honored", attempts=outcome.attempts)

            clues = self.clue_engine.generate_clues(outcome.token, participants, exclusions)

            logger.info(
                "exchange_created",
                participant_count=len(participants),
                exclusion_count=len(exclusions),
                clue_count=len(clues),
                search_state=outcome.state.value,
            )
        return ExchangeDraw(
            exchange_id=exchange_id,
            participants=participants,
            exclusions=exclusions,
            token=outcome.token,
            constraints_relaxed=outcome.constraints_relaxed,
            clues=clues,
        )

    def resolve_recipients(self, token: str, participants: list[Participant]) -> list[RecipientNotice]:
        """Best-effort recipient lookup for each giver.

        Givers whose receiver cannot be resolved are logged and skipped; one
        bad lookup never aborts the rest.
        """
        by_id = {p.id: p for p in participants}
        notices = []
        for giver in participants:
            receiver_id = self.encoder.lookup_receiver(token, giver.id)
            if receiver_id is None:
                logger.error("recipient_lookup_missing", giver_id=giver.id)
                continue

            receiver = by_id.get(receiver_id)
            if receiver is None:
                logger.error("recipient_not_in_roster", giver_id=giver.id)
                continue

            notices.append(RecipientNotice(giver=giver, receiver=receiver))
        return notices

    def regenerate_clues(
        self,
        token: str,
        participants: list[Participant],
        exclusions: list[ExclusionConstraint] | None = None,
    ) -> list[ClueStatement]:
        """Fresh clue set for an existing draw. DecodeError propagates."""
        return self.clue_engine.generate_clues(token, participants, exclusions)

    @staticmethod
    def select_clues(clues: list[ClueStatement], request: ClueSelectionRequest) -> list[ClueStatement]:
        """Pick the clues the organizer chose for the reminder email.

        Raises:
            SecretSantaError: an index is outside the generated list
        """
        out_of_range = [i for i in request.selected if i >= len(clues)]
        if out_of_range:
            raise SecretSantaError(f"Unknown clue indices: {out_of_range}")
        return [clues[i] for i in request.selected]
