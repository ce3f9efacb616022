from __future__ import annotations

import pytest

from placementrounds.core import (
    RoundKeyResolver,
    RoundKeyResolverConfig,
    normalize_round_label,
    resolve_round_key,
)


def test_exact_match_ignores_case_and_surrounding_whitespace():
    rounds = {"  Technical Interview ": "pending", "HR": "pending"}
    assert resolve_round_key("technical interview", rounds) == "  Technical Interview "


def test_normalized_match_collapses_internal_whitespace():
    rounds = {"Group   Discussion": "shortlisted"}
    assert resolve_round_key("group discussion", rounds) == "Group   Discussion"


@pytest.mark.parametrize(
    ("desired", "existing"),
    [
        ("Resume Shortlist", "Resume Shortlisting"),
        ("Resume Shortlisting", "resume shortlist"),
        ("Technical Interview", "Technical Interview Round"),
        ("technical interview round", "Technical  Interview"),
    ],
)
def test_synonym_rewrites(desired, existing):
    assert resolve_round_key(desired, {existing: "pending"}) == existing


def test_no_match_returns_none_without_guessing():
    rounds = {"Aptitude Round": "pending"}
    assert resolve_round_key("Aptitude", rounds) is None


@pytest.mark.parametrize("rounds", [None, {}])
def test_empty_inputs_return_none(rounds):
    assert resolve_round_key("Aptitude", rounds) is None
    assert resolve_round_key("", {"Aptitude": "pending"}) is None


def test_exact_match_preferred_over_normalized_match():
    rounds = {"Resume Shortlisting": "rejected", "resume shortlist": "shortlisted"}
    assert resolve_round_key("Resume Shortlist", rounds) == "resume shortlist"


def test_resolution_is_pure_and_repeatable():
    rounds = {"HR  Round": "pending", "Coding": "shortlisted"}
    snapshot = dict(rounds)

    first = resolve_round_key("hr round", rounds)
    second = resolve_round_key("hr round", rounds)

    assert first == second == "HR  Round"
    assert rounds == snapshot


@pytest.mark.parametrize("name", ["Aptitude", "Technical Interview", "  HR  ", "Resume Shortlisting"])
def test_key_stored_under_own_name_always_resolves(name):
    assert resolve_round_key(name, {name: "pending"}) == name


def test_normalize_round_label():
    assert normalize_round_label("  Final   Interview Round ") == "final interview"
    assert normalize_round_label("Profile SHORTLISTING") == "profile shortlist"
    assert normalize_round_label(None) == ""


def test_resolver_with_custom_synonyms():
    resolver = RoundKeyResolver(
        config=RoundKeyResolverConfig(synonyms=(("aptitude round", "aptitude"),))
    )
    rounds = {"Aptitude Round": "pending"}

    assert resolver.resolve("Aptitude", rounds) == "Aptitude Round"
    assert resolve_round_key("Aptitude", rounds) is None


def test_resolve_or_create_falls_back_to_desired_name():
    resolver = RoundKeyResolver()

    assert resolver.resolve_or_create("Aptitude", {"aptitude": "pending"}) == ("aptitude", False)
    assert resolver.resolve_or_create("Aptitude", {"Aptitude Round": "pending"}) == ("Aptitude", True)


def test_status_for_defaults_to_pending():
    resolver = RoundKeyResolver()

    assert resolver.status_for("Technical", {"technical": "shortlisted"}) == "shortlisted"
    assert resolver.status_for("Technical", {"HR": "rejected"}) == "pending"
    assert resolver.status_for("Technical", None) == "pending"
