"""Sealing and unsealing of assignment sets.

The organizer only ever sees the opaque token; the clue engine and the email
collaborator unseal it through AssignmentEncoder. The token is a Fernet token
(AES-128-CBC + HMAC-SHA256) over the compact JSON list
[{"giverId": ..., "receiverId": ...}, ...].
"""

import base64
import hashlib
import json

import structlog
from cryptography.fernet import Fernet, InvalidToken
from pydantic import BaseModel, ConfigDict, Field, StrictStr, TypeAdapter, ValidationError

from secret_santa.core.exceptions import DecodeError

logger = structlog.get_logger(__name__)


class Assignment(BaseModel):
    """One giver -> receiver edge of a draw. Wire keys are camelCase."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    giver_id: StrictStr = Field(alias="giverId")
    receiver_id: StrictStr = Field(alias="receiverId")


_ASSIGNMENT_LIST = TypeAdapter(list[Assignment])


def derive_fernet_key(secret: str) -> bytes:
    """Stretch an arbitrary configured secret into a 32-byte Fernet key."""
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest)


class AssignmentEncoder:
    """Symmetric encoder bound to one process secret.

    The secret is injected once at startup; whether it is the insecure
    built-in default is the caller's concern.
    """

    def __init__(self, secret: str):
        self._fernet = Fernet(derive_fernet_key(secret))

    def encode(self, assignments: list[Assignment]) -> str:
        """Serialize and encrypt an assignment set into an opaque token."""
        payload = _ASSIGNMENT_LIST.dump_json(list(assignments), by_alias=True)
        return self._fernet.encrypt(payload).decode("ascii")

    def decode(self, token: str) -> list[Assignment]:
        """Decrypt a token back into its assignment set.

        Raises:
            DecodeError: token is malformed, was sealed under another key,
                or does not contain a list of {giverId, receiverId} records
        """
        if not isinstance(token, str) or not token:
            raise DecodeError("Invalid assignment data")

        try:
            payload = self._fernet.decrypt(token.encode("ascii"))
        except (InvalidToken, UnicodeEncodeError) as e:
            logger.warning("assignment_token_decode_failed", stage="decrypt", error_type=type(e).__name__)
            raise DecodeError("Invalid assignment data") from e

        try:
            return _ASSIGNMENT_LIST.validate_python(json.loads(payload))
        except (ValueError, ValidationError) as e:
            logger.warning("assignment_token_decode_failed", stage="parse", error_type=type(e).__name__)
            raise DecodeError("Invalid assignment data") from e

    def lookup_receiver(self, token: str, giver_id: str) -> str | None:
        """Receiver id for giver_id, or None when it cannot be resolved.

        Never raises: used from best-effort delivery loops.
        """
        try:
            assignments = self.decode(token)
        except DecodeError:
            return None

        for assignment in assignments:
            if assignment.giver_id == giver_id:
                return assignment.receiver_id
        return None
