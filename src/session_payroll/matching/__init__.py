"""
Client matching for calendar event titles.
"""

from .engine import ClientMatcher, MatchCandidate, MatchConfidence, UncertainMatch
from .normalize import normalize, tokenize

__all__ = [
    "ClientMatcher",
    "MatchCandidate",
    "MatchConfidence",
    "UncertainMatch",
    "normalize",
    "tokenize",
]
