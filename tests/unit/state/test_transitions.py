"""
Tests for the permits screen state machine.
"""

import pytest

from kvkk_widget.api.schemas import ConsentNotFound
from kvkk_widget.state.session_state import NoticeLevel, Phase, SessionState
from kvkk_widget.state.transitions import (
    MSG_CREATED,
    MSG_INVALID_PHONE,
    MSG_LOOKUP_FAILED,
    MSG_UPDATE_FAILED,
    CreateFailed,
    CreateStarted,
    CreateSucceeded,
    DraftPermitToggled,
    InvalidPhoneEntered,
    InvalidTransitionError,
    LookupFailed,
    LookupNotFound,
    LookupSucceeded,
    PermitToggleStarted,
    SearchStarted,
    UpdateFailed,
    UpdateSucceeded,
    transition,
)


def _found(record):
    searching = transition(SessionState(), SearchStarted("5321234567"))
    return transition(searching, LookupSucceeded(record))


def _offer_create():
    searching = transition(SessionState(), SearchStarted("5321234567"))
    return transition(searching, LookupNotFound(ConsentNotFound()))


def test_search_started_sets_loading():
    """Test that starting a search sets the loading flag."""
    state = transition(SessionState(), SearchStarted("5321234567"))

    assert state.phase is Phase.SEARCHING
    assert state.is_loading is True
    assert state.phone_number == "5321234567"


def test_lookup_success_enters_found_with_permission(make_record):
    """Test that a found record sets the switch from its permission."""
    state = _found(make_record(permitted=True))

    assert state.phase is Phase.FOUND
    assert state.is_permitted is True
    assert state.is_loading is False
    assert state.show_new_form is False
    assert state.can_toggle is True


def test_lookup_not_found_clears_record(make_record):
    """Test that not found clears the previous record."""
    state = transition(_found(make_record(permitted=True)), SearchStarted("5329998877"))
    state = transition(state, LookupNotFound(ConsentNotFound(description="yok")))

    assert state.phase is Phase.NOT_FOUND_OFFER_CREATE
    assert state.record is None
    assert state.show_new_form is True
    assert state.is_permitted is False
    assert state.is_loading is False


def test_lookup_failure_returns_to_idle_and_keeps_record(make_record):
    """Test that a failed lookup returns to idle and keeps the record."""
    record = make_record()
    state = transition(_found(record), SearchStarted("5329998877"))
    state = transition(state, LookupFailed())

    assert state.phase is Phase.IDLE
    assert state.record == record
    assert state.is_loading is False
    assert state.notice.level is NoticeLevel.NEGATIVE
    assert state.notice.message == MSG_LOOKUP_FAILED


def test_toggle_is_optimistic(make_record):
    """Test that the switch moves before the update completes."""
    state = transition(_found(make_record(permitted=False)), PermitToggleStarted(True))

    assert state.phase is Phase.MUTATING
    assert state.is_permitted is True
    assert state.is_loading is True
    assert state.record.permitted is False


def test_update_success_takes_server_value(make_record):
    """Test that a successful update takes the server value."""
    state = transition(_found(make_record(permitted=False)), PermitToggleStarted(True))
    # Service may reconcile the requested value
    state = transition(state, UpdateSucceeded(make_record(permitted=False)))

    assert state.phase is Phase.FOUND
    assert state.is_permitted is False


def test_update_failure_reverts_to_confirmed_value(make_record):
    """Test that a failed update reverts to the confirmed value."""
    state = transition(_found(make_record(permitted=True)), PermitToggleStarted(False))
    state = transition(state, UpdateFailed())

    assert state.phase is Phase.FOUND
    assert state.is_permitted is True
    assert state.is_loading is False
    assert state.notice.message == MSG_UPDATE_FAILED


def test_draft_permit_only_in_creation_form(make_record):
    """Test that the draft permission changes only in the creation form."""
    state = transition(_offer_create(), DraftPermitToggled(True))
    assert state.is_permitted is True

    with pytest.raises(InvalidTransitionError):
        transition(_found(make_record()), DraftPermitToggled(True))


def test_create_success_enters_found_and_hides_form(make_record):
    """Test that a successful create hides the form."""
    state = transition(_offer_create(), CreateStarted())
    assert state.show_new_form is True
    assert state.is_loading is True

    state = transition(state, CreateSucceeded(make_record(permitted=True)))

    assert state.phase is Phase.FOUND
    assert state.show_new_form is False
    assert state.new_full_name == ""
    assert state.notice.level is NoticeLevel.POSITIVE
    assert state.notice.message == MSG_CREATED


def test_create_failure_stays_in_creation_form():
    """Test that a failed create stays in the creation form."""
    state = transition(_offer_create(), CreateStarted())
    state = transition(state, CreateFailed())

    assert state.phase is Phase.NOT_FOUND_OFFER_CREATE
    assert state.show_new_form is True
    assert state.is_loading is False


def test_invalid_phone_keeps_phase_and_raises_notice():
    """Test that an invalid phone keeps the phase and raises a notice."""
    state = transition(SessionState(), InvalidPhoneEntered("0532"))

    assert state.phase is Phase.IDLE
    assert state.phone_number == "0532"
    assert state.notice.message == MSG_INVALID_PHONE


@pytest.mark.parametrize(
    "event",
    [
        SearchStarted("5321234567"),
        InvalidPhoneEntered("0532"),
        PermitToggleStarted(True),
    ],
)
def test_no_new_request_while_loading(event):
    """Test that no request starts while another is loading."""
    searching = transition(SessionState(), SearchStarted("5321234567"))

    with pytest.raises(InvalidTransitionError):
        transition(searching, event)


def test_unknown_event_is_rejected():
    """Test that an unknown event is rejected."""
    with pytest.raises(TypeError):
        transition(SessionState(), object())


def test_transition_does_not_mutate_snapshot():
    """Test that a transition leaves the input snapshot unchanged."""
    before = SessionState()
    transition(before, SearchStarted("5321234567"))

    assert before.phase is Phase.IDLE
    assert before.is_loading is False


def test_lookup_failure_after_not_found_hides_creation_form():
    """Test that a failed lookup after not found hides the creation form."""
    state = transition(_offer_create(), SearchStarted("5329998877"))
    state = transition(state, LookupFailed())

    assert state.phase is Phase.IDLE
    assert state.show_new_form is False
    assert state.not_found_message == ""
    assert state.can_create is False


def test_not_found_message_falls_back_to_default_text():
    """Test that not found without a description shows the default text."""
    state = _offer_create()

    assert state.not_found_message == "Bu numaraya ait bir kayıt yok."


def test_found_clears_not_found_message(make_record):
    """Test that a found record clears the not-found text."""
    state = transition(_offer_create(), SearchStarted("5321234567"))
    state = transition(state, LookupSucceeded(make_record()))

    assert state.not_found_message == ""
    assert state.show_new_form is False
