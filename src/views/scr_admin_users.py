from __future__ import annotations

from typing import Dict, List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer, Select

import api.users
from api.client import ApiError
from api.models import User
from lifecycle.engine import AdminAction
from utils.messages import ModeSwitchedMessage
from utils.pure import format_date
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal, InputModal
from views.render import account_actions, account_status_label, render_user_detail

ALL = "ALL"
STATUS_FILTERS = [
    ("All accounts", ALL),
    ("Pending review", "PENDING"),
    ("Approved", "APPROVED"),
    ("Suspended", "BLOCKED"),
    ("Rejected", "REJECTED"),
]


class AdminUsersScreen(BaseScreen):
    """
    Staff review buyer registrations: approve or reject new applications,
    suspend and re-activate existing accounts.
    """

    def __init__(self) -> None:
        super().__init__()
        self._users: List[User] = []
        self._by_id: Dict[str, User] = {}
        self._selected: Optional[User] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Select(
                STATUS_FILTERS, value="PENDING", allow_blank=False, id="select-account-status"
            )
            yield DataTable(id="table-admin-users")
            yield MarkdownViewer(id="md-admin-user", show_table_of_contents=False)
            yield Horizontal(id="hort-account-actions")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Business", "Contact", "Email", "Registered", "Status")

    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    def handle_reload(self) -> None:
        self._load_users()

    @on(Select.Changed, "#select-account-status")
    def handle_filter(self) -> None:
        self._fill_table()

    @on(DataTable.RowHighlighted)
    async def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None:
            return
        await self._select(self._by_id.get(event.row_key.value))

    @work(exclusive=True, group="admin-users")
    async def _load_users(self) -> None:
        try:
            users = await api.users.admin_list_users(self.app.state.token)
        except ApiError as e:
            self.notify(f"Could not load accounts: {e.message}", severity="error")
            return
        # staff accounts are not up for review
        self._users = [u for u in users if not u.is_admin]
        self._by_id = {u.id: u for u in self._users}
        self._fill_table()

    def _fill_table(self) -> None:
        status = self.query_one("#select-account-status", Select).value
        shown = [u for u in self._users if status == ALL or u.status == status]

        table = self.query_one(DataTable)
        table.clear()
        for u in shown:
            table.add_row(
                u.name,
                u.contact_name or "-",
                u.email,
                format_date(u.created_at),
                account_status_label(u.status),
                key=u.id,
            )
        self.call_later(self._select, shown[0] if shown else None)

    async def _select(self, user: Optional[User]) -> None:
        self._selected = user
        self.query_one("#md-admin-user", MarkdownViewer).document.update(render_user_detail(user))
        bar = self.query_one("#hort-account-actions", Horizontal)
        await bar.remove_children()
        if user is None:
            return
        await bar.mount_all(
            [
                Button(
                    a.label,
                    id=f"btn-account-{a.key}",
                    variant="error" if a.input_required else "success",
                )
                for a in account_actions(user)
            ]
        )

    @on(Button.Pressed, "#hort-account-actions Button")
    def handle_action_pressed(self, event: Button.Pressed) -> None:
        if self._selected is None:
            return
        key = event.button.id.removeprefix("btn-account-")
        for action in account_actions(self._selected):
            if action.key == key:
                self._run_action(self._selected, action)
                return

    @work(exclusive=True, group="admin-account-action")
    async def _run_action(self, user: User, action: AdminAction) -> None:
        reason: Optional[str] = None
        if action.input_prompt:
            reason = await self.app.push_screen_wait(
                InputModal(
                    f"{action.confirm}\n{action.input_prompt}",
                    placeholder=action.input_prompt,
                    required=action.input_required,
                    tone="error",
                )
            )
            if reason is None:
                return
        elif not await self.app.push_screen_wait(
            DialogModal(action.confirm, primary_text="Yes", secondary_text="No", tone="positive")
        ):
            return

        token = self.app.state.token
        try:
            if action.key == "approve":
                await api.users.approve_user(token, user.id)
            elif action.key == "reject":
                await api.users.reject_user(token, user.id, reason or "")
            elif action.key == "suspend":
                await api.users.suspend_user(token, user.id, reason or "")
            elif action.key == "activate":
                await api.users.activate_user(token, user.id)
        except (ApiError, ValueError) as e:
            self.notify(f"{action.label} failed: {e}", severity="error")
            return

        self.notify(f"{user.name} updated.", severity="information")
        self._load_users()
