"""
Session state snapshot.

Holds the ephemeral state of one permits screen. Snapshots are immutable;
every change produces a new SessionState through `transition`.
NOTE: Nothing here is persisted; state is discarded when the screen closes.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from kvkk_widget.api.schemas import ConsentRecord


class Phase(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    FOUND = "found"
    NOT_FOUND_OFFER_CREATE = "not_found_offer_create"
    MUTATING = "mutating"


class NoticeLevel(str, Enum):
    # Values match NiceGUI notification types
    POSITIVE = "positive"
    NEGATIVE = "negative"


@dataclass(frozen=True, eq=False)
class Notice:
    """
    Operator-facing message produced by a transition.

    Compared by identity so the same text raised twice is shown twice.
    """

    level: NoticeLevel
    message: str


@dataclass(frozen=True)
class SessionState:
    phase: Phase = Phase.IDLE
    phone_number: str = ""
    record: Optional[ConsentRecord] = None
    is_permitted: bool = False
    is_loading: bool = False
    show_new_form: bool = False
    not_found_message: str = ""
    new_full_name: str = ""
    notice: Optional[Notice] = field(default=None, compare=False)

    def evolve(self, **changes) -> "SessionState":
        return replace(self, **changes)

    @property
    def confirmed_permitted(self) -> bool:
        """Permission as last confirmed by the service."""
        return self.record.permitted if self.record else False

    @property
    def can_toggle(self) -> bool:
        return (
            self.phase is Phase.FOUND
            and self.record is not None
            and not self.is_loading
        )

    @property
    def can_create(self) -> bool:
        return self.phase is Phase.NOT_FOUND_OFFER_CREATE and not self.is_loading
