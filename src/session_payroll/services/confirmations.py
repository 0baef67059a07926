"""Match confirmation service.

Turns a user's decision on an uncertain match into a durable record. Once a
title is confirmed or rejected for an employee it is resolved from the ledger
on every later calculation and never shown as uncertain again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from session_payroll.errors import ConfirmationSaveError
from session_payroll.matching.engine import ClientMatcher, UncertainMatch
from session_payroll.schemas.confirmation import Resolution

if TYPE_CHECKING:
    from session_payroll.state_store import StateStore

logger = logging.getLogger(__name__)


class ConfirmationStatus(str, Enum):
    """Outcome of a confirm/reject request."""

    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    ERROR = "ERROR"


@dataclass
class ConfirmationOutcome:
    """Result of confirming or rejecting one uncertain match."""

    status: ConfirmationStatus
    event_title: str
    client_name: str | None = None
    message: str | None = None

    @property
    def success(self) -> bool:
        """Return True if the decision was stored."""
        return self.status != ConfirmationStatus.ERROR


class MatchConfirmationService:
    """Confirms or rejects uncertain matches for one store.

    Usage:
        service = MatchConfirmationService(store)
        outcome = service.confirm_match(match, employee_id)
    """

    def __init__(self, state_store: StateStore, matcher: ClientMatcher | None = None) -> None:
        self.store = state_store
        self.matcher = matcher or ClientMatcher()

    def confirm_match(
        self,
        match: UncertainMatch,
        employee_id: str,
        client_name: str | None = None,
    ) -> ConfirmationOutcome:
        """Record that the match's title belongs to a client.

        Args:
            match: The uncertain match being resolved.
            employee_id: Employee whose ledger receives the decision.
            client_name: Client chosen by the user; defaults to the suggestion.

        Returns:
            CONFIRMED outcome, or ERROR if there is no client to confirm or the
            write fails.
        """
        chosen = client_name
        if chosen is None and match.suggested_match is not None:
            chosen = match.suggested_match.client_name
        if not chosen:
            return ConfirmationOutcome(
                status=ConfirmationStatus.ERROR,
                event_title=match.event_title,
                message="No suggested match to confirm",
            )

        if self.store.get_client_by_employee_and_name(employee_id, chosen) is None:
            return ConfirmationOutcome(
                status=ConfirmationStatus.ERROR,
                event_title=match.event_title,
                message=f"Client '{chosen}' is not in the roster",
            )

        logger.info("Confirming match: '%s' -> '%s'", match.event_title, chosen)
        try:
            self.store.save_confirmation(
                match.event_title, Resolution.confirmed(chosen), employee_id
            )
        except ConfirmationSaveError as e:
            logger.error("Failed to confirm match '%s': %s", match.event_title, e)
            return ConfirmationOutcome(
                status=ConfirmationStatus.ERROR,
                event_title=match.event_title,
                message=str(e),
            )

        return ConfirmationOutcome(
            status=ConfirmationStatus.CONFIRMED,
            event_title=match.event_title,
            client_name=chosen,
        )

    def reject_match(self, match: UncertainMatch, employee_id: str) -> ConfirmationOutcome:
        """Record that the match's title is not a client session."""
        logger.info("Rejecting match: '%s'", match.event_title)
        try:
            self.store.save_confirmation(match.event_title, Resolution.rejected(), employee_id)
        except ConfirmationSaveError as e:
            logger.error("Failed to reject match '%s': %s", match.event_title, e)
            return ConfirmationOutcome(
                status=ConfirmationStatus.ERROR,
                event_title=match.event_title,
                message=str(e),
            )

        return ConfirmationOutcome(
            status=ConfirmationStatus.REJECTED, event_title=match.event_title
        )

    def build_match(
        self, event_title: str, employee_id: str, keywords: tuple[str, ...] = ()
    ) -> UncertainMatch:
        """Rebuild the uncertain match for a bare title against the current roster."""
        client_names = [c.name for c in self.store.get_clients_by_employee(employee_id)]
        candidates = self.matcher.get_uncertain_matches(event_title, client_names, keywords)
        return UncertainMatch(
            event_title=event_title,
            event_id="",
            possible_matches=candidates,
            suggested_match=candidates[0] if candidates else None,
        )
