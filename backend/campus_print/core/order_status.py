"""Order Status State Machine — legal transitions and deletion gating.

Invariants:
    - Pending -> Printed -> Collected; no skipping, no reversal
    - Collected is terminal and the only status from which deletion is allowed
    - Illegal requests raise InvalidTransitionError, never silently ignored

Design Decisions:
    - Transition table as a dict: one source of truth for the store and the API
"""

from campus_print.core.domain_types import OrderStatus
from campus_print.core.errors import ErrorContext, InvalidTransitionError


INITIAL_STATUS = OrderStatus.PENDING
TERMINAL_STATUS = OrderStatus.COLLECTED

ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PRINTED}),
    OrderStatus.PRINTED: frozenset({OrderStatus.COLLECTED}),
    OrderStatus.COLLECTED: frozenset(),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def check_transition(
    current: OrderStatus, target: OrderStatus,
    context: ErrorContext | None = None,
) -> None:
    """Raise InvalidTransitionError unless current -> target is allowed."""
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot move order from {current.value} to {target.value}",
            context,
        )


def check_deletable(
    current: OrderStatus, context: ErrorContext | None = None,
) -> None:
    """Raise InvalidTransitionError unless the order is in the terminal status."""
    if current != TERMINAL_STATUS:
        raise InvalidTransitionError(
            f"Only {TERMINAL_STATUS.value} orders can be deleted "
            f"(order is {current.value})",
            context,
        )
