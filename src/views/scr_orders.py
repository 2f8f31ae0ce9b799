from typing import Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, MarkdownViewer, ProgressBar

import api.orders
from api.client import ApiError
from api.models import Order
from lifecycle.engine import describe_status, progress_percent
from lifecycle.payment import payment_method_name
from utils.messages import ModeSwitchedMessage, OrdersChangedMessage
from utils.pure import format_amount, format_date
from views.base_screen import BaseScreen
from views.render import render_order_detail


class OrdersScreen(BaseScreen):
    """
    Buyers browse their orders and follow each one's lifecycle.

    Layout:
    - Markdown detail at the top: status, timeline, next step, items.
    - Progress bar for the highlighted order.
    - Orders table below, newest first.
    """

    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
        Binding("r", "reload", "Refresh", show=True),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._orders: Dict[str, Order] = {}

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            with Horizontal(id="hort-progress"):
                yield Label("Progress", id="label-progress")
                yield ProgressBar(total=100, show_eta=False, id="bar-progress")
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Placed", "Status", "Payment", "Total")

    def action_reload(self) -> None:
        self._load_orders()

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(OrdersChangedMessage)
    def handle_refresh(self) -> None:
        self._load_orders()

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None:
            return
        self._render_detail(self._orders.get(event.row_key.value))

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        try:
            orders: List[Order] = await api.orders.list_orders(self.app.state.token)
        except ApiError as e:
            self.notify(f"Could not load orders: {e.message}", severity="error")
            return

        self._orders = {o.id: o for o in orders}
        table = self.query_one(DataTable)
        table.clear()
        for o in orders:
            info = describe_status(o.status, o.payment_method)
            table.add_row(
                o.order_number,
                format_date(o.created_at),
                f"{info.icon} {info.label}",
                payment_method_name(o.payment_method),
                format_amount(o.total),
                key=o.id,
            )

        if not orders:
            self._render_detail(None)
            return

        wanted = self.app.state.pending_order_id
        self.app.state.pending_order_id = None
        row = 0
        if wanted in self._orders:
            row = table.get_row_index(wanted)
        table.move_cursor(row=row)
        self._render_detail(orders[row])

    def _render_detail(self, order: Optional[Order]) -> None:
        self.query_one("#md-order-detail", MarkdownViewer).document.update(
            render_order_detail(order)
        )
        bar = self.query_one("#bar-progress", ProgressBar)
        bar.update(progress=progress_percent(order) if order else 0)
