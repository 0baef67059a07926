"""Confidence-graded matching of calendar event titles to client names.

Event titles are freeform ("Μαρία Παπαδοπούλου Online", "Papadopoulou-Maria",
"Supervision group"), so a title is matched against every client name with a
tiered strategy. Each tier maps to a MatchConfidence:

1. EXACT:  Special keyword present (short-circuits all other matching)
2. EXACT:  Full name (first + last) as a contiguous token run
3. HIGH:   Reversed name (last + first), including "Surname-Name"
4. HIGH:   Either alias of a "Name A - Name B" client name
5. MEDIUM: Surname only (whole token, min length) - REQUIRES CONFIRMATION
6. MEDIUM: Single-word client name
7. LOW:    First name only (whole token, min length) - REQUIRES CONFIRMATION

All comparisons are case-insensitive and diacritic-insensitive.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Sequence

from session_payroll.matching.normalize import (
    ALIAS_SEPARATOR_RE,
    contains_sequence,
    leading_words,
    tokenize,
)

if TYPE_CHECKING:
    from session_payroll.schemas.calendar import CalendarEvent

logger = logging.getLogger(__name__)


class MatchConfidence(str, Enum):
    """Match confidence tiers, strongest first."""

    EXACT = "EXACT"  # Full name or special keyword
    HIGH = "HIGH"  # Reversed name or dash-separated alias
    MEDIUM = "MEDIUM"  # Surname only (needs confirmation)
    LOW = "LOW"  # First name only (needs confirmation)
    NONE = "NONE"  # No match

    @property
    def rank(self) -> int:
        """Numeric strength; higher is more confident."""
        return _RANKS[self]

    @property
    def is_confident(self) -> bool:
        """True for tiers that may be auto-assigned."""
        return self in (MatchConfidence.EXACT, MatchConfidence.HIGH)

    @property
    def is_uncertain(self) -> bool:
        """True for tiers that need human confirmation."""
        return self in (MatchConfidence.MEDIUM, MatchConfidence.LOW)


_RANKS = {
    MatchConfidence.EXACT: 4,
    MatchConfidence.HIGH: 3,
    MatchConfidence.MEDIUM: 2,
    MatchConfidence.LOW: 1,
    MatchConfidence.NONE: 0,
}


@dataclass(frozen=True)
class MatchCandidate:
    """One client (or keyword) that an event title may refer to."""

    client_name: str
    confidence: MatchConfidence
    matched_text: str  # The part of the event title that matched
    reason: str  # Human-readable explanation

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "client_name": self.client_name,
            "confidence": self.confidence.value,
            "matched_text": self.matched_text,
            "reason": self.reason,
        }


@dataclass
class UncertainMatch:
    """An event whose only candidates need human confirmation."""

    event_title: str
    event_id: str
    possible_matches: list[MatchCandidate] = field(default_factory=list)
    suggested_match: MatchCandidate | None = None  # Best guess (highest confidence)

    @classmethod
    def from_candidates(
        cls, event: CalendarEvent, candidates: Sequence[MatchCandidate]
    ) -> "UncertainMatch":
        """Build from ranked candidates; the first one is the suggestion."""
        ranked = list(candidates)
        return cls(
            event_title=event.title,
            event_id=event.id,
            possible_matches=ranked,
            suggested_match=ranked[0] if ranked else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "event_title": self.event_title,
            "event_id": self.event_id,
            "possible_matches": [m.to_dict() for m in self.possible_matches],
            "suggested_match": self.suggested_match.to_dict() if self.suggested_match else None,
        }


def _name_parts(name: str) -> list[tuple[str, ...]]:
    """Token tuples for the first and last name of a client name."""
    return [tokens for tokens in (tokenize(word) for word in leading_words(name)) if tokens]


class ClientMatcher:
    """Matches event titles against a client roster.

    The matcher is stateless apart from its configuration; every method is a
    pure function of its arguments.
    """

    DEFAULT_MIN_PARTIAL_LENGTH = 4

    def __init__(self, min_partial_length: int = DEFAULT_MIN_PARTIAL_LENGTH) -> None:
        """Initialize the matcher.

        Args:
            min_partial_length: Minimum length of a lone first name or surname
                before it is offered as a partial (MEDIUM/LOW) match.
        """
        self.min_partial_length = min_partial_length

    def find_client_matches_with_confidence(
        self,
        title: str,
        client_names: Iterable[str],
        keywords: Iterable[str] = (),
    ) -> list[MatchCandidate]:
        """Find all candidate clients for an event title, ranked.

        Args:
            title: Event title to match.
            client_names: Client names in roster order.
            keywords: Special keywords (e.g. "Supervision") that override
                normal matching.

        Returns:
            Candidates sorted by confidence; ties keep roster order.
        """
        if not title or not title.strip():
            return []

        title_tokens = tokenize(title)
        logger.debug("Matching '%s' -> %s", title, " ".join(title_tokens))

        for keyword in keywords:
            keyword_tokens = tokenize(keyword)
            if contains_sequence(title_tokens, keyword_tokens):
                return [
                    MatchCandidate(
                        client_name=keyword,
                        confidence=MatchConfidence.EXACT,
                        matched_text=" ".join(keyword_tokens),
                        reason="Special keyword",
                    )
                ]

        matches: list[MatchCandidate] = []
        for client_name in client_names:
            candidate = self._match_client(title_tokens, client_name)
            if candidate is not None:
                matches.append(candidate)

        matches.sort(key=lambda m: m.confidence.rank, reverse=True)
        return matches

    def find_client_matches(
        self,
        title: str,
        client_names: Iterable[str],
        keywords: Iterable[str] = (),
    ) -> list[str]:
        """Return only confident (EXACT/HIGH) client names, best first.

        Used for deterministic auto-assignment: callers take the first name.
        """
        names: list[str] = []
        for match in self.find_client_matches_with_confidence(title, client_names, keywords):
            if match.confidence.is_confident and match.client_name not in names:
                names.append(match.client_name)
        return names

    def get_uncertain_matches(
        self,
        title: str,
        client_names: Iterable[str],
        keywords: Iterable[str] = (),
    ) -> list[MatchCandidate]:
        """Return only MEDIUM/LOW candidates, best first.

        A title with any EXACT/HIGH candidate is already decided, so it has
        no uncertain candidates.
        """
        matches = self.find_client_matches_with_confidence(title, client_names, keywords)
        if any(m.confidence.is_confident for m in matches):
            return []
        return [m for m in matches if m.confidence.is_uncertain]

    @staticmethod
    def requires_confirmation(candidate: MatchCandidate) -> bool:
        """Check if a match requires user confirmation."""
        return candidate.confidence.is_uncertain

    def _match_client(
        self, title_tokens: tuple[str, ...], client_name: str
    ) -> MatchCandidate | None:
        """Best candidate for a single client, or None."""
        if not client_name or not client_name.strip():
            return None

        aliases = [a for a in ALIAS_SEPARATOR_RE.split(client_name.strip()) if a.strip()]
        words = _name_parts(aliases[0])
        if not words:
            return None

        if len(words) == 2:
            first_name, surname = words

            if contains_sequence(title_tokens, first_name + surname):
                return MatchCandidate(
                    client_name=client_name,
                    confidence=MatchConfidence.EXACT,
                    matched_text=" ".join(first_name + surname),
                    reason="Full name (first + last)",
                )

            if contains_sequence(title_tokens, surname + first_name):
                return MatchCandidate(
                    client_name=client_name,
                    confidence=MatchConfidence.HIGH,
                    matched_text=" ".join(surname + first_name),
                    reason="Reversed name (last + first)",
                )

        # "John - Γιάννης": either spelling identifies the client
        if len(aliases) > 1:
            for alias in aliases:
                alias_tokens = tuple(tok for word in _name_parts(alias) for tok in word)
                if contains_sequence(title_tokens, alias_tokens):
                    return MatchCandidate(
                        client_name=client_name,
                        confidence=MatchConfidence.HIGH,
                        matched_text=" ".join(alias_tokens),
                        reason="Alternative name (dash-separated)",
                    )

        if len(words) == 1:
            single = words[0]
            if contains_sequence(title_tokens, single):
                return MatchCandidate(
                    client_name=client_name,
                    confidence=MatchConfidence.MEDIUM,
                    matched_text=" ".join(single),
                    reason="Single-word client name",
                )
            return None

        first_name, surname = words

        if self._is_partial_match(title_tokens, surname):
            return MatchCandidate(
                client_name=client_name,
                confidence=MatchConfidence.MEDIUM,
                matched_text=" ".join(surname),
                reason="Surname only (needs confirmation)",
            )

        if self._is_partial_match(title_tokens, first_name):
            return MatchCandidate(
                client_name=client_name,
                confidence=MatchConfidence.LOW,
                matched_text=" ".join(first_name),
                reason="First name only (needs confirmation)",
            )

        return None

    def _is_partial_match(self, title_tokens: tuple[str, ...], part: tuple[str, ...]) -> bool:
        """Whole-token match of one name part, subject to the minimum length."""
        return len("".join(part)) >= self.min_partial_length and contains_sequence(
            title_tokens, part
        )
