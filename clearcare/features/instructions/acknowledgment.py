"""
Acknowledgment state machine.

A patient acknowledges an instruction in three steps (receipt, understanding,
commitment), in any order and possibly more than once. An ``active``
instruction becomes ``acknowledged`` the first time all three have been
recorded; ``acknowledged_date`` is stamped on that transition only.
"""

from datetime import datetime
from typing import Iterable, NamedTuple, Optional


REQUIRED_ACKNOWLEDGMENTS = frozenset({"receipt", "understanding", "commitment"})


class AcknowledgmentState(NamedTuple):
    status: str
    acknowledged_date: Optional[datetime]


def is_fully_acknowledged(recorded_types: Iterable[str]) -> bool:
    return REQUIRED_ACKNOWLEDGMENTS.issubset(set(recorded_types))


def next_state(
    status: str,
    acknowledged_date: Optional[datetime],
    recorded_types: Iterable[str],
    now: datetime,
) -> AcknowledgmentState:
    """
    State after an acknowledgment has been appended.

    Args:
        status: Instruction status before the acknowledgment
        acknowledged_date: Current acknowledged_date
        recorded_types: Every acknowledgment type recorded so far, including the new one
        now: Time of the acknowledgment
    """
    if status == "active" and is_fully_acknowledged(recorded_types):
        return AcknowledgmentState("acknowledged", now)
    return AcknowledgmentState(status, acknowledged_date)
