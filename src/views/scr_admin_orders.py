from __future__ import annotations

from typing import Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer, Select

import api.orders
from api.client import ApiError
from api.models import Order
from lifecycle.engine import AdminAction, admin_actions, describe_status
from lifecycle.enums import OrderStatus
from lifecycle.payment import payment_method_name
from utils.messages import ModeSwitchedMessage, OrdersChangedMessage
from utils.pure import format_amount, format_date
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal, InputModal
from views.render import render_admin_detail

ALL = "ALL"


class AdminOrdersScreen(BaseScreen):
    """
    Staff verify payments and move orders through fulfilment.
    Only actions the lifecycle engine offers for the selected order are shown.
    """

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []
        self._by_id: Dict[str, Order] = {}
        self._selected: Optional[Order] = None
        # order to open once it is on screen, e.g. from a notification
        self._focus_id: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Select(
                [("All orders", ALL)]
                + [(s.value.replace("_", " ").title(), s.value) for s in OrderStatus],
                value=ALL,
                allow_blank=False,
                id="select-status",
            )
            yield DataTable(id="table-admin-orders")
            yield MarkdownViewer(id="md-admin-order", show_table_of_contents=False)
            yield Horizontal(id="hort-actions")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Customer", "Placed", "Status", "Payment", "Total")

    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(OrdersChangedMessage)
    def handle_reload(self) -> None:
        self._load_orders()

    @on(Select.Changed, "#select-status")
    def handle_filter(self) -> None:
        self._fill_table()

    @on(DataTable.RowHighlighted)
    async def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None:
            return
        await self._select(self._by_id.get(event.row_key.value))

    @work(exclusive=True, group="admin-orders")
    async def _load_orders(self) -> None:
        state = self.app.state
        if state.pending_order_id is not None:
            self._focus_id, state.pending_order_id = state.pending_order_id, None
        try:
            self._orders = await api.orders.admin_list_orders(self.app.state.token)
        except ApiError as e:
            self.notify(f"Could not load orders: {e.message}", severity="error")
            return
        self._by_id = {o.id: o for o in self._orders}
        if self._focus_id not in self._by_id:
            self._focus_id = None
        self._fill_table()

    def _fill_table(self) -> None:
        select = self.query_one("#select-status", Select)
        focus = self._by_id.get(self._focus_id) if self._focus_id else None
        if focus is not None and select.value not in (ALL, focus.status.value):
            # the filter would hide it
            with select.prevent(Select.Changed):
                select.value = ALL
        status = select.value
        shown = [o for o in self._orders if status == ALL or o.status.value == status]

        table = self.query_one(DataTable)
        table.clear()
        for o in shown:
            info = describe_status(o.status, o.payment_method)
            table.add_row(
                o.order_number,
                o.customer_name or "-",
                format_date(o.created_at),
                f"{info.icon} {info.label}",
                payment_method_name(o.payment_method),
                format_amount(o.total),
                key=o.id,
            )
        if not shown:
            self.call_later(self._select, None)
        elif focus is not None:
            self._focus_id = None
            table.move_cursor(row=table.get_row_index(focus.id))

    async def _select(self, order: Optional[Order]) -> None:
        self._selected = order
        self.query_one("#md-admin-order", MarkdownViewer).document.update(
            render_admin_detail(order)
        )
        bar = self.query_one("#hort-actions", Horizontal)
        await bar.remove_children()
        if order is None:
            return
        await bar.mount_all(
            [
                Button(
                    a.label,
                    id=f"btn-action-{a.key}",
                    variant="error" if a.key == "cancel" else "primary",
                )
                for a in admin_actions(order)
            ]
        )

    @on(Button.Pressed, "#hort-actions Button")
    def handle_action_pressed(self, event: Button.Pressed) -> None:
        if self._selected is None:
            return
        key = event.button.id.removeprefix("btn-action-")
        for action in admin_actions(self._selected):
            if action.key == key:
                self._run_action(self._selected, action)
                return

    @work(exclusive=True, group="admin-action")
    async def _run_action(self, order: Order, action: AdminAction) -> None:
        value: Optional[str] = None
        if action.input_prompt:
            value = await self.app.push_screen_wait(
                InputModal(
                    f"{action.confirm}\n{action.input_prompt}",
                    placeholder=action.input_prompt,
                    required=action.input_required,
                    tone="error" if action.key == "cancel" else "default",
                )
            )
            if value is None:
                return
        elif not await self.app.push_screen_wait(
            DialogModal(action.confirm, primary_text="Yes", secondary_text="No", tone="positive")
        ):
            return

        token = self.app.state.token
        try:
            if action.key == "mark_paid":
                await api.orders.mark_paid(token, order.id)
            elif action.key == "dispatch":
                await api.orders.dispatch(token, order.id, value)
            elif action.key == "deliver":
                await api.orders.deliver(token, order.id)
            elif action.key == "cancel":
                await api.orders.cancel(token, order.id, value or "")
        except (ApiError, ValueError) as e:
            self.notify(f"{action.label} failed: {e}", severity="error")
            return

        self.notify(f"Order #{order.order_number} updated.", severity="information")
        self.post_message(OrdersChangedMessage(order.id))
