"""
Consent reconciler.

Drives the permits screen: normalizes phone numbers, calls the KVKK API
and folds every outcome into a new SessionState snapshot. Remote errors
stop here; they become transitions and operator notices.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, TypeVar

from kvkk_widget.api.kvkk_client import ConsentApiError, KvkkClient
from kvkk_widget.api.schemas import ConsentNotFound
from kvkk_widget.host import HostBundle
from kvkk_widget.state.session_state import SessionState
from kvkk_widget.state.transitions import (
    MSG_CANCELLED,
    MSG_MISSING_NAME,
    CreateFailed,
    CreateRejected,
    CreateStarted,
    CreateSucceeded,
    DraftPermitToggled,
    FullNameEdited,
    InvalidPhoneEntered,
    LookupFailed,
    LookupNotFound,
    LookupSucceeded,
    PermitToggleStarted,
    PhoneEdited,
    SearchStarted,
    UpdateFailed,
    UpdateSucceeded,
    transition,
)
from kvkk_widget.utils.logger import get_logger
from kvkk_widget.utils.phone import INVALID_PHONE, normalize_phone

logger = get_logger(__name__)

T = TypeVar("T")

Subscriber = Callable[[SessionState], None]


class RequestCancelledError(ConsentApiError):
    """Raised when the outstanding call is cancelled by the session."""


class ConsentReconciler:
    """
    State machine for one permits screen session.

    At most one request is outstanding at a time; while the loading flag
    is set, search, toggle and create return False without calling the
    API.
    """

    def __init__(
        self,
        client: KvkkClient,
        *,
        host: Optional[HostBundle] = None,
        state: Optional[SessionState] = None,
    ):
        self._client = client
        self._host = host or HostBundle()
        self._state = state or SessionState()
        self._subscribers: List[Subscriber] = []
        self._inflight: Optional[asyncio.Future] = None

    @property
    def state(self) -> SessionState:
        return self._state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback invoked with every new snapshot.

        Returns:
            A function removing the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _dispatch(self, event: object) -> SessionState:
        self._state = transition(self._state, event)

        logger.debug(
            "Session transition",
            extra={"event": type(event).__name__, "phase": self._state.phase.value},
        )

        for callback in list(self._subscribers):
            try:
                callback(self._state)
            except Exception:  # noqa: BLE001
                logger.exception("Session subscriber failed")

        return self._state

    def _can_request(self, operation: str) -> bool:
        if not self._host.is_authenticated:
            logger.warning("No host token; %s skipped", operation)
            return False

        if self._state.is_loading:
            logger.warning("Request in flight; %s ignored", operation)
            return False

        return True

    # --------------------
    # Operator input
    # --------------------
    def set_phone_number(self, phone_number: str) -> None:
        self._dispatch(PhoneEdited(phone_number or ""))

    def set_full_name(self, full_name: str) -> None:
        self._dispatch(FullNameEdited(full_name or ""))

    def set_draft_permitted(self, checked: bool) -> None:
        """Set the permit switch of the creation form."""
        if not self._state.can_create:
            logger.debug("Draft permit change ignored outside creation form")
            return
        self._dispatch(DraftPermitToggled(bool(checked)))

    # --------------------
    # Lifecycle
    # --------------------
    async def mount(self, host: Optional[HostBundle] = None) -> bool:
        """
        Start the session, seeding the search with the requester phone.

        Returns:
            True if a lookup was performed.
        """
        if host is not None:
            self._host = host

        phone = self._host.requester_phone
        if not phone:
            logger.info("Mounted without requester phone")
            return False

        self.set_phone_number(phone)
        return await self.search(phone)

    def cancel(self) -> bool:
        """
        Cancel the outstanding request, if any.

        The cancelled call is handled like a failed call of the same kind.
        """
        if self._inflight is None or self._inflight.done():
            return False

        logger.info("Cancelling outstanding KVKK request")
        self._inflight.cancel()
        return True

    async def _run(self, call: Awaitable[T]) -> T:
        task = asyncio.ensure_future(call)
        self._inflight = task

        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            self._inflight = None

        if task.cancelled():
            raise RequestCancelledError(MSG_CANCELLED)

        return task.result()

    # --------------------
    # Operations
    # --------------------
    async def search(self, phone_number: Optional[str] = None) -> bool:
        """
        Look up the record for a phone number.

        Args:
            phone_number: Raw phone number; defaults to the current input.

        Returns:
            True if a lookup request was issued.
        """
        if not self._can_request("search"):
            return False

        raw = self._state.phone_number if phone_number is None else phone_number
        phone = normalize_phone(raw)

        if phone is INVALID_PHONE:
            logger.info("Search blocked by invalid phone number")
            self._dispatch(InvalidPhoneEntered(raw))
            return False

        self._dispatch(SearchStarted(phone))

        try:
            outcome = await self._run(self._client.lookup(phone))
        except RequestCancelledError as exc:
            self._dispatch(LookupFailed(str(exc)))
            return True
        except asyncio.CancelledError:
            # Caller gave up; release the in-flight flag before unwinding
            self._dispatch(LookupFailed(MSG_CANCELLED))
            raise
        except ConsentApiError:
            logger.exception("KVKK lookup failed", extra={"phone": phone})
            self._dispatch(LookupFailed())
            return True

        if isinstance(outcome, ConsentNotFound):
            self._dispatch(LookupNotFound(outcome))
        else:
            self._dispatch(LookupSucceeded(outcome))

        return True

    async def toggle_permit(self, checked: Optional[bool] = None) -> bool:
        """
        Change the permission of the displayed record.

        Args:
            checked: New switch position; flips the current one when omitted.

        The switch moves immediately; it is set from the service response
        on success and reverted to the last confirmed value on failure.

        Returns:
            True if an update request was issued.
        """
        if not self._can_request("toggle"):
            return False

        if not self._state.can_toggle:
            logger.warning(
                "Permit toggle ignored",
                extra={"phase": self._state.phase.value},
            )
            return False

        record = self._state.record
        checked = not record.permitted if checked is None else bool(checked)
        if checked == record.permitted:
            return False

        self._dispatch(PermitToggleStarted(checked))

        try:
            updated = await self._run(
                self._client.update(record.model_copy(update={"permitted": checked}))
            )
        except RequestCancelledError as exc:
            self._dispatch(UpdateFailed(str(exc)))
            return True
        except asyncio.CancelledError:
            # Caller gave up; release the in-flight flag before unwinding
            self._dispatch(UpdateFailed(MSG_CANCELLED))
            raise
        except ConsentApiError:
            logger.exception("KVKK update failed", extra={"code": record.code})
            self._dispatch(UpdateFailed())
            return True

        self._dispatch(UpdateSucceeded(updated))
        return True

    async def create(self, full_name: Optional[str] = None) -> bool:
        """
        Create a record for the searched phone number.

        Args:
            full_name: Customer name; defaults to the creation form input.

        Returns:
            True if a create request was issued.
        """
        if not self._can_request("create"):
            return False

        if not self._state.can_create:
            logger.warning(
                "Create ignored",
                extra={"phase": self._state.phase.value},
            )
            return False

        if full_name is not None:
            self.set_full_name(full_name)

        phone = normalize_phone(self._state.phone_number)
        if phone is INVALID_PHONE:
            self._dispatch(InvalidPhoneEntered(self._state.phone_number))
            return False

        name = self._state.new_full_name.strip()
        if not name:
            self._dispatch(CreateRejected(MSG_MISSING_NAME))
            return False

        permitted = self._state.is_permitted
        self._dispatch(CreateStarted())

        try:
            record = await self._run(
                self._client.create(full_name=name, phone=phone, permitted=permitted)
            )
        except RequestCancelledError as exc:
            self._dispatch(CreateFailed(str(exc)))
            return True
        except asyncio.CancelledError:
            # Caller gave up; release the in-flight flag before unwinding
            self._dispatch(CreateFailed(MSG_CANCELLED))
            raise
        except ConsentApiError:
            logger.exception("KVKK create failed", extra={"phone": phone})
            self._dispatch(CreateFailed())
            return True

        self._dispatch(CreateSucceeded(record))
        return True
