"""Tests for the client matching engine."""

from __future__ import annotations

import pytest

from session_payroll.matching.engine import (
    ClientMatcher,
    MatchCandidate,
    MatchConfidence,
    UncertainMatch,
)

ROSTER = [
    "Maria Papadopoulou",
    "Anna Papadopoulou",
    "Nikos Georgiou Μετρητά",
    "John - Γιάννης Κωστόπουλος",
    "Ελένη",
]


@pytest.fixture
def matcher() -> ClientMatcher:
    return ClientMatcher()


class TestMatchConfidence:
    """Tests for MatchConfidence tiers."""

    def test_ranks_are_ordered(self) -> None:
        ranks = [c.rank for c in MatchConfidence]
        assert ranks == sorted(ranks, reverse=True)

    def test_confident_and_uncertain_tiers(self) -> None:
        assert MatchConfidence.EXACT.is_confident
        assert MatchConfidence.HIGH.is_confident
        assert MatchConfidence.MEDIUM.is_uncertain
        assert MatchConfidence.LOW.is_uncertain
        assert not MatchConfidence.NONE.is_confident
        assert not MatchConfidence.NONE.is_uncertain


class TestConfidentMatches:
    """EXACT and HIGH tiers."""

    def test_full_name_is_exact(self, matcher) -> None:
        matches = matcher.find_client_matches_with_confidence("Maria Papadopoulou", ROSTER)
        assert matches[0].client_name == "Maria Papadopoulou"
        assert matches[0].confidence == MatchConfidence.EXACT

    def test_full_name_ignores_case_accents_and_suffix(self, matcher) -> None:
        matches = matcher.find_client_matches_with_confidence(
            "MARÍA papadopoulou online", ROSTER
        )
        assert matches[0].client_name == "Maria Papadopoulou"
        assert matches[0].confidence == MatchConfidence.EXACT

    def test_client_annotation_is_ignored(self, matcher) -> None:
        matches = matcher.find_client_matches_with_confidence("Nikos Georgiou", ROSTER)
        assert matches[0].client_name == "Nikos Georgiou Μετρητά"
        assert matches[0].confidence == MatchConfidence.EXACT

    def test_reversed_name_is_high(self, matcher) -> None:
        matches = matcher.find_client_matches_with_confidence("Papadopoulou-Maria", ROSTER)
        assert matches[0].client_name == "Maria Papadopoulou"
        assert matches[0].confidence == MatchConfidence.HIGH

    def test_dash_alias_is_high(self, matcher) -> None:
        for title in ("Γιάννης Κωστόπουλος", "John"):
            matches = matcher.find_client_matches_with_confidence(title, ROSTER)
            assert matches[0].client_name == "John - Γιάννης Κωστόπουλος"
            assert matches[0].confidence == MatchConfidence.HIGH

    def test_keyword_short_circuits(self, matcher) -> None:
        matches = matcher.find_client_matches_with_confidence(
            "Εποπτεία Maria Papadopoulou", ROSTER, keywords=("Εποπτεία", "Supervision")
        )
        assert len(matches) == 1
        assert matches[0].client_name == "Εποπτεία"
        assert matches[0].confidence == MatchConfidence.EXACT

    def test_keyword_matches_without_accents(self, matcher) -> None:
        matches = matcher.find_client_matches_with_confidence(
            "ΕΠΟΠΤΕΙΑ ομάδα", ROSTER, keywords=("Εποπτεία",)
        )
        assert matches[0].client_name == "Εποπτεία"

    def test_find_client_matches_returns_confident_names(self, matcher) -> None:
        assert matcher.find_client_matches("Maria Papadopoulou", ROSTER) == ["Maria Papadopoulou"]
        assert matcher.find_client_matches("Papadopoulou", ROSTER) == []


class TestUncertainMatches:
    """MEDIUM and LOW tiers."""

    def test_shared_surname_gives_two_medium_candidates(self, matcher) -> None:
        matches = matcher.find_client_matches_with_confidence("Papadopoulou", ROSTER)
        assert [m.client_name for m in matches] == ["Maria Papadopoulou", "Anna Papadopoulou"]
        assert all(m.confidence == MatchConfidence.MEDIUM for m in matches)

    def test_first_name_only_is_low(self, matcher) -> None:
        matches = matcher.find_client_matches_with_confidence("Maria new intake", ROSTER)
        assert len(matches) == 1
        assert matches[0].client_name == "Maria Papadopoulou"
        assert matches[0].confidence == MatchConfidence.LOW
        assert ClientMatcher.requires_confirmation(matches[0])

    def test_single_word_client_is_medium(self, matcher) -> None:
        matches = matcher.find_client_matches_with_confidence("Ελένη online", ROSTER)
        assert matches[0].client_name == "Ελένη"
        assert matches[0].confidence == MatchConfidence.MEDIUM

    def test_partial_requires_whole_token(self, matcher) -> None:
        assert matcher.find_client_matches_with_confidence("Annamaria Lee", ROSTER) == []

    def test_short_name_part_is_not_offered(self) -> None:
        matcher = ClientMatcher(min_partial_length=6)
        assert matcher.find_client_matches_with_confidence("Anna", ["Anna Lee"]) == []

    def test_ranked_strongest_first(self, matcher) -> None:
        matches = matcher.find_client_matches_with_confidence(
            "Maria Anna Papadopoulou", ROSTER
        )
        confidences = [m.confidence.rank for m in matches]
        assert confidences == sorted(confidences, reverse=True)
        assert matches[0].client_name == "Anna Papadopoulou"
        assert matches[0].confidence == MatchConfidence.EXACT

    def test_get_uncertain_matches_filters_confident(self, matcher) -> None:
        uncertain = matcher.get_uncertain_matches("Papadopoulou", ROSTER)
        assert len(uncertain) == 2
        assert matcher.get_uncertain_matches("Maria Papadopoulou", ROSTER) == []


class TestEdgeCases:
    """Blank input and serialization."""

    def test_blank_title_has_no_matches(self, matcher) -> None:
        assert matcher.find_client_matches_with_confidence("   ", ROSTER) == []

    def test_blank_client_names_are_skipped(self, matcher) -> None:
        assert matcher.find_client_matches_with_confidence("Maria", ["", "  "]) == []

    def test_uncertain_match_suggests_first_candidate(self, make_event) -> None:
        first = MatchCandidate("A B", MatchConfidence.MEDIUM, "b", "Surname only")
        second = MatchCandidate("C B", MatchConfidence.MEDIUM, "b", "Surname only")
        match = UncertainMatch.from_candidates(make_event("B"), [first, second])

        assert match.suggested_match == first
        data = match.to_dict()
        assert data["suggested_match"]["client_name"] == "A B"
        assert len(data["possible_matches"]) == 2
