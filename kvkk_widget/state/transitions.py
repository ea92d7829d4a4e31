"""
Permits screen state machine.

`transition` is a pure function: it maps a snapshot and an event to the
next snapshot. All I/O happens in the reconciler, which dispatches the
events defined here.
"""

from dataclasses import dataclass
from typing import Callable, Dict, FrozenSet, Tuple, Type

from kvkk_widget.api.schemas import ConsentNotFound, ConsentRecord
from kvkk_widget.state.session_state import (
    Notice,
    NoticeLevel,
    Phase,
    SessionState,
)

MSG_INVALID_PHONE = "Geçersiz telefon numarası"
MSG_MISSING_NAME = "Lütfen ad soyad giriniz"
MSG_LOOKUP_FAILED = "KVKK verisi alınamadı"
MSG_UPDATE_FAILED = "KVKK izni güncellenemedi"
MSG_CREATE_FAILED = "KVKK kaydı oluşturulamadı"
MSG_CREATED = "KVKK kaydı oluşturuldu"
MSG_CANCELLED = "İstek iptal edildi"

ANY_PHASE: FrozenSet[Phase] = frozenset(Phase)
IDLE_PHASES: FrozenSet[Phase] = ANY_PHASE - {Phase.SEARCHING, Phase.MUTATING}


class InvalidTransitionError(RuntimeError):
    """Raised when an event is dispatched in a phase that cannot accept it."""

    def __init__(self, state: SessionState, event: object):
        super().__init__(
            f"{type(event).__name__} not allowed in phase {state.phase.value}"
        )
        self.state = state
        self.event = event


# --------------------
# Operator input
# --------------------
@dataclass(frozen=True)
class PhoneEdited:
    phone_number: str


@dataclass(frozen=True)
class FullNameEdited:
    full_name: str


@dataclass(frozen=True)
class DraftPermitToggled:
    checked: bool


@dataclass(frozen=True)
class InvalidPhoneEntered:
    phone_number: str


@dataclass(frozen=True)
class CreateRejected:
    message: str


# --------------------
# Lookup
# --------------------
@dataclass(frozen=True)
class SearchStarted:
    phone: str


@dataclass(frozen=True)
class LookupSucceeded:
    record: ConsentRecord


@dataclass(frozen=True)
class LookupNotFound:
    outcome: ConsentNotFound


@dataclass(frozen=True)
class LookupFailed:
    message: str = MSG_LOOKUP_FAILED


# --------------------
# Update
# --------------------
@dataclass(frozen=True)
class PermitToggleStarted:
    checked: bool


@dataclass(frozen=True)
class UpdateSucceeded:
    record: ConsentRecord


@dataclass(frozen=True)
class UpdateFailed:
    message: str = MSG_UPDATE_FAILED


# --------------------
# Create
# --------------------
@dataclass(frozen=True)
class CreateStarted:
    pass


@dataclass(frozen=True)
class CreateSucceeded:
    record: ConsentRecord


@dataclass(frozen=True)
class CreateFailed:
    message: str = MSG_CREATE_FAILED


def _error(message: str) -> Notice:
    return Notice(level=NoticeLevel.NEGATIVE, message=message)


def _phone_edited(state: SessionState, event: PhoneEdited) -> SessionState:
    return state.evolve(phone_number=event.phone_number)


def _full_name_edited(state: SessionState, event: FullNameEdited) -> SessionState:
    return state.evolve(new_full_name=event.full_name)


def _draft_permit_toggled(
    state: SessionState, event: DraftPermitToggled
) -> SessionState:
    return state.evolve(is_permitted=event.checked)


def _invalid_phone(state: SessionState, event: InvalidPhoneEntered) -> SessionState:
    return state.evolve(
        phone_number=event.phone_number,
        notice=_error(MSG_INVALID_PHONE),
    )


def _create_rejected(state: SessionState, event: CreateRejected) -> SessionState:
    return state.evolve(notice=_error(event.message))


def _search_started(state: SessionState, event: SearchStarted) -> SessionState:
    return state.evolve(
        phase=Phase.SEARCHING,
        phone_number=event.phone,
        is_loading=True,
        notice=None,
    )


def _found(state: SessionState, record: ConsentRecord) -> SessionState:
    return state.evolve(
        phase=Phase.FOUND,
        record=record,
        is_permitted=record.permitted,
        is_loading=False,
        show_new_form=False,
        not_found_message="",
    )


def _lookup_succeeded(state: SessionState, event: LookupSucceeded) -> SessionState:
    return _found(state, event.record)


def _lookup_not_found(state: SessionState, event: LookupNotFound) -> SessionState:
    return state.evolve(
        phase=Phase.NOT_FOUND_OFFER_CREATE,
        record=None,
        # New records start without consent until the operator grants it
        is_permitted=False,
        is_loading=False,
        show_new_form=True,
        not_found_message=event.outcome.text,
    )


def _lookup_failed(state: SessionState, event: LookupFailed) -> SessionState:
    return state.evolve(
        phase=Phase.IDLE,
        is_loading=False,
        show_new_form=False,
        not_found_message="",
        notice=_error(event.message),
    )


def _permit_toggle_started(
    state: SessionState, event: PermitToggleStarted
) -> SessionState:
    return state.evolve(
        phase=Phase.MUTATING,
        is_permitted=event.checked,
        is_loading=True,
        notice=None,
    )


def _update_succeeded(state: SessionState, event: UpdateSucceeded) -> SessionState:
    return _found(state, event.record)


def _update_failed(state: SessionState, event: UpdateFailed) -> SessionState:
    return state.evolve(
        phase=Phase.FOUND,
        is_permitted=state.confirmed_permitted,
        is_loading=False,
        notice=_error(event.message),
    )


def _create_started(state: SessionState, event: CreateStarted) -> SessionState:
    return state.evolve(phase=Phase.MUTATING, is_loading=True, notice=None)


def _create_succeeded(state: SessionState, event: CreateSucceeded) -> SessionState:
    return _found(state, event.record).evolve(
        new_full_name="",
        notice=Notice(level=NoticeLevel.POSITIVE, message=MSG_CREATED),
    )


def _create_failed(state: SessionState, event: CreateFailed) -> SessionState:
    return state.evolve(
        phase=Phase.NOT_FOUND_OFFER_CREATE,
        is_loading=False,
        notice=_error(event.message),
    )


_Handler = Callable[[SessionState, object], SessionState]

# event type -> (phases accepting it, handler)
_TABLE: Dict[Type, Tuple[FrozenSet[Phase], _Handler]] = {
    PhoneEdited: (ANY_PHASE, _phone_edited),
    FullNameEdited: (ANY_PHASE, _full_name_edited),
    DraftPermitToggled: (frozenset({Phase.NOT_FOUND_OFFER_CREATE}), _draft_permit_toggled),
    InvalidPhoneEntered: (IDLE_PHASES, _invalid_phone),
    CreateRejected: (frozenset({Phase.NOT_FOUND_OFFER_CREATE}), _create_rejected),
    SearchStarted: (IDLE_PHASES, _search_started),
    LookupSucceeded: (frozenset({Phase.SEARCHING}), _lookup_succeeded),
    LookupNotFound: (frozenset({Phase.SEARCHING}), _lookup_not_found),
    LookupFailed: (frozenset({Phase.SEARCHING}), _lookup_failed),
    PermitToggleStarted: (frozenset({Phase.FOUND}), _permit_toggle_started),
    UpdateSucceeded: (frozenset({Phase.MUTATING}), _update_succeeded),
    UpdateFailed: (frozenset({Phase.MUTATING}), _update_failed),
    CreateStarted: (frozenset({Phase.NOT_FOUND_OFFER_CREATE}), _create_started),
    CreateSucceeded: (frozenset({Phase.MUTATING}), _create_succeeded),
    CreateFailed: (frozenset({Phase.MUTATING}), _create_failed),
}


def transition(state: SessionState, event: object) -> SessionState:
    """
    Compute the snapshot that follows `event`.

    Raises:
        InvalidTransitionError: If the event is not accepted in the
            current phase.
        TypeError: For unknown event types.
    """
    try:
        phases, handler = _TABLE[type(event)]
    except KeyError:
        raise TypeError(f"Unknown session event: {event!r}") from None

    if state.phase not in phases:
        raise InvalidTransitionError(state, event)

    return handler(state, event)
