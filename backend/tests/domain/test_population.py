"""Tests for roster statistics.

Pure function: no randomness, deterministic outputs.
"""
import pytest

from secret_santa.domain.models import ExclusionConstraint
from secret_santa.domain.population import analyze
from tests.conftest import make_participant

pytestmark = pytest.mark.unit


def test_skewed_years_with_two_unique_years():
    """Years [2015 x4, 2021]: 4/5 = 0.8 > 0.7 is skewed, two unique years."""
    participants = [make_participant(str(i), f"P{i}", year=2015) for i in range(4)]
    participants.append(make_participant("4", "P4", year=2021))

    analysis = analyze(participants, [])

    assert analysis.is_year_distribution_skewed is True
    assert analysis.unique_years == 2
    assert analysis.modal_year == 2015
    assert analysis.modal_year_count == 4
    assert analysis.year_histogram == {2015: 4, 2021: 1}


def test_exactly_seventy_percent_is_not_skewed():
    participants = [make_participant(str(i), f"P{i}", year=2020) for i in range(7)]
    participants += [make_participant(str(i), f"P{i}", year=2000 + i) for i in range(7, 10)]

    assert analyze(participants).is_year_distribution_skewed is False


def test_modal_year_tie_takes_first_encountered():
    participants = [
        make_participant("a", "A", year=2019),
        make_participant("b", "B", year=2017),
        make_participant("c", "C", year=2017),
        make_participant("d", "D", year=2019),
    ]
    assert analyze(participants).modal_year == 2019


def test_gender_counts_and_balance():
    participants = [
        make_participant("a", "A", "male"),
        make_participant("b", "B", "male"),
        make_participant("c", "C", "female"),
        make_participant("d", "D", "other"),
        make_participant("e", "E", "other"),
    ]
    analysis = analyze(participants)

    assert (analysis.male_count, analysis.female_count, analysis.other_count) == (2, 1, 2)
    assert analysis.is_gender_balanced is True
    assert analysis.counted_gender_total == 3
    assert analysis.dominant_gender_share == pytest.approx(0.4)


def test_gender_imbalance_beyond_one():
    participants = [make_participant(str(i), f"P{i}", "male") for i in range(3)]
    participants.append(make_participant("f", "F", "female"))

    assert analyze(participants).is_gender_balanced is False


def test_exclusions_in_modal_year_counted():
    participants = [
        make_participant("a", "A", year=2020),
        make_participant("b", "B", year=2020),
        make_participant("c", "C", year=2020),
        make_participant("d", "D", year=2012),
    ]
    exclusions = [ExclusionConstraint("A", "B"), ExclusionConstraint("C", "D")]

    analysis = analyze(participants, exclusions)

    assert analysis.exclusion_count == 2
    assert analysis.exclusions_in_modal_year == 1
    assert analysis.exclusion_modal_year_share == pytest.approx(0.5)


def test_empty_roster_is_safe():
    analysis = analyze([], [])

    assert analysis.total == 0
    assert analysis.modal_year is None
    assert analysis.unique_years == 0
    assert analysis.is_year_distribution_skewed is False
    assert analysis.dominant_gender_share == 0.0
    assert analysis.exclusion_modal_year_share == 0.0
