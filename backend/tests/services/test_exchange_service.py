"""Tests for ExchangeService orchestration.

Settings are built explicitly so no environment or .env file leaks in.
"""
import random

import pytest

from secret_santa.core.config import Settings
from secret_santa.core.exceptions import DecodeError, SecretSantaError
from secret_santa.domain.assignment import is_valid_derangement
from secret_santa.domain.encoder import Assignment
from secret_santa.schemas.exchange import ClueSelectionRequest, CreateExchangeRequest
from secret_santa.services.exchange_service import ExchangeService
from tests.conftest import make_participant

pytestmark = pytest.mark.unit


@pytest.fixture
def settings():
    return Settings(assignment_secret="service-secret", _env_file=None)


@pytest.fixture
def service(settings):
    return ExchangeService(settings, rng=random.Random(7))


@pytest.fixture
def request_payload():
    return {
        "participants": [
            {"name": "Alice", "email": "alice@example.com", "gender": "female", "year_moved": 2011},
            {"name": "Bruno", "email": "bruno@example.com", "gender": "male", "year_moved": 2014},
            {"name": "Chantal", "email": "chantal@mail.org", "gender": "female", "year_moved": 2016},
            {"name": "Dev", "email": "dev@mail.org", "gender": "male", "year_moved": 2018},
            {"name": "Elodie", "email": "elodie@example.com", "gender": "Female", "year_moved": 2020},
            {"name": "Felix", "email": "felix@corp.net", "gender": "male", "year_moved": 2022},
        ],
        "exclusions": [{"participant1": "Alice", "participant2": "Bruno", "reason": "couple"}],
    }


def test_create_exchange_returns_sealed_valid_draw(service, request_payload):
    draw = service.create_exchange(CreateExchangeRequest.model_validate(request_payload))

    assignments = service.encoder.decode(draw.token)
    assert is_valid_derangement(assignments, draw.participants)
    assert draw.constraints_relaxed is False
    assert len(draw.participants) == 6
    assert len({p.id for p in draw.participants}) == 6
    assert 0 < len(draw.clues) <= 10


def test_create_exchange_honors_exclusions(service, request_payload):
    draw = service.create_exchange(CreateExchangeRequest.model_validate(request_payload))

    names = {p.id: p.name for p in draw.participants}
    pairs = {(names[a.giver_id], names[a.receiver_id]) for a in service.encoder.decode(draw.token)}
    assert ("Alice", "Bruno") not in pairs
    assert ("Bruno", "Alice") not in pairs


def test_resolve_recipients_covers_every_giver(service, request_payload):
    draw = service.create_exchange(CreateExchangeRequest.model_validate(request_payload))

    notices = service.resolve_recipients(draw.token, draw.participants)

    assert {n.giver.id for n in notices} == {p.id for p in draw.participants}
    assert all(n.giver.id != n.receiver.id for n in notices)


def test_resolve_recipients_skips_unresolvable_givers(service):
    participants = [make_participant("a", "A"), make_participant("b", "B"), make_participant("c", "C")]
    token = service.encoder.encode([
        Assignment(giver_id="a", receiver_id="b"),
        Assignment(giver_id="b", receiver_id="ghost"),
    ])

    notices = service.resolve_recipients(token, participants)

    assert [(n.giver.id, n.receiver.id) for n in notices] == [("a", "b")]


def test_resolve_recipients_with_bad_token_returns_empty(service):
    assert service.resolve_recipients("garbage", [make_participant("a", "A")]) == []


def test_regenerate_clues_rejects_foreign_token(service, request_payload):
    draw = service.create_exchange(CreateExchangeRequest.model_validate(request_payload))
    other = ExchangeService(Settings(assignment_secret="another-secret", _env_file=None))

    with pytest.raises(DecodeError):
        other.regenerate_clues(draw.token, draw.participants, draw.exclusions)


def test_clue_target_count_comes_from_settings(request_payload):
    settings = Settings(assignment_secret="s", clue_target_count=3, _env_file=None)
    service = ExchangeService(settings, rng=random.Random(3))

    draw = service.create_exchange(CreateExchangeRequest.model_validate(request_payload))

    assert len(draw.clues) == 3


def test_select_clues_by_index(service, request_payload):
    draw = service.create_exchange(CreateExchangeRequest.model_validate(request_payload))

    chosen = service.select_clues(draw.clues, ClueSelectionRequest(selected=[1, 0]))

    assert chosen == [draw.clues[1], draw.clues[0]]


def test_select_clues_out_of_range(service, request_payload):
    draw = service.create_exchange(CreateExchangeRequest.model_validate(request_payload))

    with pytest.raises(SecretSantaError):
        service.select_clues(draw.clues, ClueSelectionRequest(selected=[99]))


def test_default_secret_still_works(monkeypatch):
    monkeypatch.delenv("ASSIGNMENT_SECRET", raising=False)
    monkeypatch.delenv("NEXTAUTH_SECRET", raising=False)
    service = ExchangeService(Settings(_env_file=None))

    assert service.settings.uses_default_secret is True
    token = service.encoder.encode([Assignment(giver_id="a", receiver_id="b")])
    assert service.encoder.lookup_receiver(token, "a") == "b"
