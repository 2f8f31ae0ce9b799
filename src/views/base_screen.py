from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import (
    ConnectionStateMessage,
    ModeSwitchedMessage,
    NotificationsChangedMessage,
    UserLoginMessage,
    UserLogoutMessage,
)
from utils.pure import generate_markdown_table
from views.modal_dialog import DialogModal, QuitDialogModal

CONNECTIVITY_TEXT = {
    "connected": "● Live",
    "connecting": "◌ Connecting…",
    "disconnected": "○ Offline: notifications may be stale",
}


class Sidebar(Container):
    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Label("", id="label-unread")
        yield Label("", id="label-connectivity")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    async def on_mount(self):
        self.init_mode = self.app.current_mode
        state = self.app.state
        if state.user is None:
            return

        table_rows = [
            ["Name", state.user.name],
            ["Email", state.user.email],
            ["Role", "Admin" if state.role == "admin" else "Buyer"],
        ]
        md_table_str = generate_markdown_table(None, table_rows, ["l", "l"])
        await self.query_one(Markdown).update(md_table_str)

        modes = self.app.ADMIN_MODES if state.role == "admin" else self.app.BUYER_MODES
        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [ListItem(Label(v), id="list-menu-item-" + k) for k, v in modes.items()]
        )

        self.highlight_item(self.init_mode)
        self.refresh_badges()

    def refresh_badges(self) -> None:
        channel = self.app.state.channel
        unread = channel.unread_count if channel else 0
        state = channel.connection_state.value if channel else "disconnected"

        self.query_one("#label-unread", Label).update(f"🔔 {unread} unread")
        conn = self.query_one("#label-connectivity", Label)
        conn.update(CONNECTIVITY_TEXT[state])
        conn.set_class(state != "connected", "-stale")

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.id == "list-menu-item-" + mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "Base Screen",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        :return:
        """
        self.app.title = "Wholesale Storefront"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v):
                self.sub_title = self.app.ADMIN_MODES.get(k) or self.app.BUYER_MODES.get(
                    k, header_sub_title
                )

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @on(NotificationsChangedMessage)
    @on(ConnectionStateMessage)
    def forward_channel_update(self, message) -> None:
        # app-level messages reach the active screen only; hand them to the sidebar
        if self._show_sidebar:
            for sidebar in self.query(Sidebar):
                sidebar.refresh_badges()

    @on(UserLoginMessage)
    def handle_user_login(self):
        self.refresh()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
