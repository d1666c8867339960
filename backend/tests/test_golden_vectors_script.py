"""
Tests for golden_vectors.py script.

The checked-in fixture must reproduce from the current code.
"""
import json
from pathlib import Path

from scripts.golden_vectors import (
    DEFAULT_SEED_SETS,
    build_case,
    build_vectors,
    check_vectors,
)


FIXTURE = Path(__file__).parent / "fixtures" / "golden_vectors.json"


def load_fixture() -> dict:
    with open(FIXTURE) as f:
        return json.load(f)


class TestFixture:
    def test_fixture_reproduces(self) -> None:
        assert check_vectors(load_fixture()) == []

    def test_fixture_covers_default_seed_sets(self) -> None:
        seeds = [case["seeds"] for case in load_fixture()["cases"]]
        assert seeds == DEFAULT_SEED_SETS


class TestBuildCase:
    def test_test_seed_case(self) -> None:
        case = build_case(["test"], draws=3)
        assert case["initial_state"] == [
            0.48878967366181314,
            0.9570674991700798,
            0.4093984307255596,
            1,
        ]
        assert case["fractions"] == [
            0.5442283214069903,
            0.7071346458978951,
            0.7247104682028294,
        ]
        assert case["hex16"] == "8bb26a65e8f8259e"
        assert case["id17"] == "ZijCQhPMuZzaCKawq"
        assert case["secret43"] == "ITUlzRzw5I_JluK71GMpYrVtgzMH5WjqIlBz1Xx8b-L"

    def test_derived_strings_independent_of_draws(self) -> None:
        assert build_case(["test"], draws=1)["id17"] == build_case(["test"], draws=9)["id17"]


class TestCheckVectors:
    def test_tampered_fraction_reported(self) -> None:
        document = load_fixture()
        document["cases"][0]["fractions"][0] = 0.5
        mismatches = check_vectors(document)
        assert len(mismatches) == 1
        assert "fractions" in mismatches[0]
        assert "['test']" in mismatches[0]

    def test_tampered_secret_reported(self) -> None:
        document = load_fixture()
        document["cases"][1]["secret43"] = "x" * 43
        mismatches = check_vectors(document)
        assert len(mismatches) == 1
        assert "secret43" in mismatches[0]

    def test_fresh_document_checks_clean(self) -> None:
        document = build_vectors([["round", "trip"]], draws=4)
        assert document["draws"] == 4
        assert len(document["cases"][0]["fractions"]) == 4
        assert check_vectors(document) == []
