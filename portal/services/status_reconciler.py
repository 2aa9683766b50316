"""
Status rules for service applications.

The reconciler is pure: it never touches the database. The registry, the
payment ledger and the admin routes ask it for the next status and persist
the answer themselves.

Happy path::

    pending_payment -> payment_pending -> payment_verified -> in_review -> approved

``rejected`` is reachable from ``payment_pending`` (payment rejected) and from
``in_review`` (admin rejection). ``approved`` and ``rejected`` are terminal.
"""

import logging
from enum import Enum
from typing import Dict, FrozenSet, Optional, Union

from portal.core.errors import InvalidTransition, ValidationError
from portal.schemas.service_application_schema import ApplicationStatusEnum, PaymentStatusEnum

logger = logging.getLogger(__name__)

S = ApplicationStatusEnum


class StatusEvent(str, Enum):
    payment_confirmed = "payment_confirmed"
    payment_verified = "payment_verified"
    payment_rejected = "payment_rejected"
    move_to_review = "move_to_review"
    approve = "approve"
    reject = "reject"


TERMINAL_STATUSES: FrozenSet[S] = frozenset({S.approved, S.rejected})

# Values the admin override may set; the initial state is not one of them
OVERRIDE_STATUSES: FrozenSet[S] = frozenset({
    S.payment_pending,
    S.payment_verified,
    S.in_review,
    S.approved,
    S.rejected,
})

_NON_TERMINAL: FrozenSet[S] = frozenset(set(S) - TERMINAL_STATUSES)

# event -> (allowed source states, target state)
TRANSITIONS: Dict[StatusEvent, tuple] = {
    StatusEvent.payment_confirmed: (_NON_TERMINAL, S.payment_pending),
    StatusEvent.payment_verified: (frozenset({S.payment_pending, S.payment_verified}), S.payment_verified),
    StatusEvent.payment_rejected: (frozenset({S.payment_pending, S.rejected}), S.rejected),
    StatusEvent.move_to_review: (frozenset({S.payment_verified, S.in_review}), S.in_review),
    StatusEvent.approve: (frozenset({S.in_review, S.approved}), S.approved),
    StatusEvent.reject: (frozenset({S.in_review, S.rejected}), S.rejected),
}

# Admin status requests that follow the graph
_ADMIN_EVENTS: Dict[S, StatusEvent] = {
    S.in_review: StatusEvent.move_to_review,
    S.approved: StatusEvent.approve,
    S.rejected: StatusEvent.reject,
}

_PAYMENT_TO_APPLICATION: Dict[PaymentStatusEnum, S] = {
    PaymentStatusEnum.pending_verification: S.payment_pending,
    PaymentStatusEnum.verified: S.payment_verified,
    PaymentStatusEnum.rejected: S.rejected,
}


def parse_status(value: Union[str, S, None]) -> S:
    if isinstance(value, S):
        return value
    try:
        return S((value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in S)
        raise ValidationError(f"Invalid status '{value}'. Allowed values: {allowed}", field="status")


def is_terminal(status: Union[str, S]) -> bool:
    return parse_status(status) in TERMINAL_STATUSES


class StatusReconciler:

    def apply(self, current: Union[str, S], event: StatusEvent) -> S:
        """Return the status that ``event`` leads to from ``current``."""
        current = parse_status(current)
        sources, target = TRANSITIONS[event]
        if current not in sources:
            logger.warning(f"Rejected transition {event.value} from {current.value}")
            raise InvalidTransition(
                f"Cannot apply '{event.value}' to an application in status '{current.value}'",
                field="status",
            )
        return target

    def admin_target(self, current: Union[str, S], requested: Union[str, S, None], force: bool = False) -> S:
        """Resolve an admin status change request.

        Without ``force`` only the review/approve/reject edges (and staying put)
        are allowed. With ``force`` the graph is bypassed, but the value must
        still be one of the non-initial statuses.
        """
        target = parse_status(requested)
        current = parse_status(current)

        if force:
            if target not in OVERRIDE_STATUSES:
                raise ValidationError(
                    f"Status '{target.value}' cannot be set by override", field="status"
                )
            if current != target:
                logger.info(f"Admin override {current.value} -> {target.value}")
            return target

        if target == current and current not in TERMINAL_STATUSES:
            return current

        event = _ADMIN_EVENTS.get(target)
        if event is None:
            raise InvalidTransition(
                f"Status '{target.value}' is set by the payment flow, not directly",
                field="status",
            )
        return self.apply(current, event)

    def payment_event(self, verified: bool) -> StatusEvent:
        return StatusEvent.payment_verified if verified else StatusEvent.payment_rejected

    def derive(
        self,
        stored: Union[str, S],
        latest_payment_status: Optional[Union[str, PaymentStatusEnum]] = None,
        overridden: bool = False,
    ) -> S:
        """Effective status of an application as seen by readers.

        Payment insert and application update are separate writes, so the
        stored status can lag behind the latest payment. While the application
        is still in the payment phase the latest payment decides, unless an
        admin override was written after that payment (``overridden``).
        """
        stored = parse_status(stored)
        if overridden or latest_payment_status is None:
            return stored
        if stored not in (S.pending_payment, S.payment_pending):
            return stored
        return _PAYMENT_TO_APPLICATION[PaymentStatusEnum(latest_payment_status)]


status_reconciler = StatusReconciler()
