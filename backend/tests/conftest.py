"""Shared test fixtures for all test groups."""

import random

import pytest

from secret_santa.domain.encoder import AssignmentEncoder
from secret_santa.domain.models import Gender, Participant

TEST_SECRET = "test-secret-do-not-use"


def make_participant(pid: str, name: str, gender: str = "male", year: int = 2020, email: str = "") -> Participant:
    return Participant(id=pid, name=name, gender=Gender(gender), year_moved=year, email=email)


@pytest.fixture
def encoder():
    """Encoder bound to a fixed test secret."""
    return AssignmentEncoder(TEST_SECRET)


@pytest.fixture
def rng():
    """Seeded random source for deterministic draws and clues."""
    return random.Random(1234)


@pytest.fixture
def trio():
    """Three participants A/B/C."""
    return [
        make_participant("a", "A", "male", 2015),
        make_participant("b", "B", "female", 2018),
        make_participant("c", "C", "other", 2021),
    ]


@pytest.fixture
def diverse_roster():
    """Twelve participants spread over genders, six years and a few email domains."""
    rows = [
        ("p01", "Alice", "female", 2010, "alice@example.com"),
        ("p02", "Bernard", "male", 2012, "bernard@example.com"),
        ("p03", "Chloe", "female", 2012, "chloe@mail.org"),
        ("p04", "Dmitri", "male", 2014, "dmitri@mail.org"),
        ("p05", "Eve", "female", 2014, "eve@example.com"),
        ("p06", "Farid", "male", 2016, "farid@corp.net"),
        ("p07", "Gisele", "female", 2016, "gisele@corp.net"),
        ("p08", "Hugo", "male", 2018, "hugo@example.com"),
        ("p09", "Ines", "female", 2018, "ines@mail.org"),
        ("p10", "Jonas", "male", 2014, "jonas@example.com"),
        ("p11", "Kiki", "other", 2016, "kiki@corp.net"),
        ("p12", "Laurent", "male", 2023, "laurent@mail.org"),
    ]
    return [make_participant(*row) for row in rows]
