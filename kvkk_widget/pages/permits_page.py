"""
KVKK permits page.

Renders the reconciler snapshot and forwards operator input to it.
No decision logic lives here.
"""

import asyncio
from typing import Callable, Optional

from nicegui import ui

from kvkk_widget.api.kvkk_client import KvkkClient
from kvkk_widget.host import HostBundle
from kvkk_widget.state.reconciler import ConsentReconciler
from kvkk_widget.state.session_state import Notice, SessionState
from kvkk_widget.utils.logger import get_logger

logger = get_logger(__name__)


def show_permits_page(client: KvkkClient, bundle: HostBundle) -> ConsentReconciler:
    """
    Render the permits screen for one browser session.

    Returns:
        The reconciler owning this screen's state.
    """
    reconciler = ConsentReconciler(client, host=bundle)
    previous: dict[str, Optional[SessionState]] = {"state": reconciler.state}
    last_notice: dict[str, Optional[Notice]] = {"notice": None}

    with ui.element("div").classes(
        "flex justify-center min-h-screen w-full bg-slate-50"
    ) as root:
        with ui.card().classes("w-full max-w-md shadow-md rounded-xl p-0"):
            ui.label("KVKK İzin Yönetimi").classes(
                "text-base font-semibold px-6 pt-5"
            )

            @ui.refreshable
            def render() -> None:
                _render_state(reconciler, reconciler.state, render.refresh)

            render()

    def on_change(state: SessionState) -> None:
        before = previous["state"]
        previous["state"] = state

        # Typing only changes input fields; rebuilding would drop focus
        typed = before.evolve(
            phone_number=state.phone_number,
            new_full_name=state.new_full_name,
        )
        if typed != state:
            render.refresh()

        notice = state.notice
        if notice is not None and notice is not last_notice["notice"]:
            with root:
                ui.notify(notice.message, type=notice.level.value)
        last_notice["notice"] = notice

    unsubscribe = reconciler.subscribe(on_change)

    def on_disconnect() -> None:
        logger.debug("Permits page disconnected")
        reconciler.cancel()
        unsubscribe()

    ui.context.client.on_disconnect(on_disconnect)

    if not bundle.is_authenticated:
        logger.warning("Permits page opened without host token")

    # Timers start once the browser is connected
    ui.timer(0.1, reconciler.mount, once=True)
    return reconciler


def _render_state(
    reconciler: ConsentReconciler,
    state: SessionState,
    refresh: Callable[[], None],
) -> None:
    with ui.column().classes("w-full gap-4 p-6"):
        _render_search(reconciler, state)

        if state.show_new_form:
            _render_new_form(reconciler, state)

        if state.record is not None:
            _render_record(reconciler, state, refresh)

        if state.is_loading:
            ui.spinner(size="lg").classes("self-center")


def _render_search(reconciler: ConsentReconciler, state: SessionState) -> None:
    with ui.row().classes("w-full items-center no-wrap gap-0"):
        phone_input = (
            ui.input(
                placeholder="Telefon Numarası",
                value=state.phone_number,
                on_change=lambda e: reconciler.set_phone_number(e.value),
            )
            .props("outlined dense type=tel autofocus")
            .classes("grow")
        )
        phone_input.enabled = not state.is_loading

        search_btn = ui.button(
            "Ara",
            on_click=lambda: asyncio.create_task(reconciler.search()),
        )
        search_btn.enabled = not state.is_loading

        phone_input.on(
            "keydown.enter",
            lambda: asyncio.create_task(reconciler.search()),
        )

    if state.show_new_form:
        ui.label(state.not_found_message).classes(
            "w-full text-xs font-medium text-red-700 bg-red-50 rounded-b-lg px-3 py-2"
        )


def _render_new_form(reconciler: ConsentReconciler, state: SessionState) -> None:
    with ui.card().classes("w-full gap-4 p-4 border"):
        ui.label("Yeni Cari Oluştur").classes("text-sm font-semibold")

        ui.input(
            placeholder="Ad Soyad",
            value=state.new_full_name,
            on_change=lambda e: reconciler.set_full_name(e.value),
        ).props("outlined dense").classes("w-full")

        with ui.row().classes("w-full justify-between items-center"):
            ui.label("KVKK İzni").classes("text-xs")
            ui.switch(
                value=state.is_permitted,
                on_change=lambda e: reconciler.set_draft_permitted(e.value),
            ).enabled = state.can_create

        save_btn = ui.button(
            "Kaydet",
            on_click=lambda: asyncio.create_task(reconciler.create()),
        ).classes("w-full")
        save_btn.enabled = state.can_create


def _render_record(
    reconciler: ConsentReconciler,
    state: SessionState,
    refresh: Callable[[], None],
) -> None:
    record = state.record

    with ui.column().classes("w-full gap-0 divide-y text-xs"):
        for label, value in (
            ("Müşteri Kodu", record.code),
            ("Müşteri Adı", record.full_name),
            ("Telefon", record.phone),
        ):
            with ui.row().classes("w-full justify-between items-center py-2"):
                ui.label(label)
                ui.label(value or "").classes("font-bold")

        with ui.row().classes("w-full justify-between items-center py-2"):
            ui.label("KVKK İzni")

            async def on_toggle(e) -> None:
                if e.value == reconciler.state.is_permitted:
                    return
                # Snap the switch back when the toggle was not accepted
                if not await reconciler.toggle_permit(e.value):
                    refresh()

            ui.switch(value=state.is_permitted, on_change=on_toggle).enabled = (
                state.can_toggle
            )
