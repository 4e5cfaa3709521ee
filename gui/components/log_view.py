"""Conversion log display component."""

from datetime import datetime
from typing import Callable

import flet as ft

from ..strings import Strings

LEVEL_COLORS = {
    "info": None,
    "warning": ft.Colors.ORANGE,
    "error": ft.Colors.RED,
    "success": ft.Colors.GREEN,
    "final": ft.Colors.BLUE_700,
}


class LogView:
    """Timestamped log view with copy and clear functionality."""

    def __init__(
        self,
        page: ft.Page,
        get_debug_log: Callable[[], str] | None = None,
    ):
        """Initialize log view.

        Args:
            page: Flet page instance for updates
            get_debug_log: Callback to get detailed debug log
        """
        self.page = page
        self._log_entries: list[str] = []
        self._get_debug_log = get_debug_log

        self.log_list = ft.ListView(
            expand=True,
            spacing=2,
            auto_scroll=True,
        )

        self.container = self._build()

    def _build(self) -> ft.Container:
        """Build the log view container."""
        buttons = ft.Row(
            [
                ft.TextButton(Strings.COPY, on_click=self._on_copy_click),
                ft.TextButton(Strings.COPY_DEBUG, on_click=self._on_copy_debug_click),
                ft.TextButton(Strings.CLEAR, on_click=self._on_clear_click),
            ],
            spacing=0,
        )
        return ft.Container(
            content=ft.Column(
                [
                    ft.Row(
                        [
                            ft.Text(Strings.CONVERSION_LOG, weight=ft.FontWeight.BOLD, size=12),
                            buttons,
                        ],
                        alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
                    ),
                    ft.Container(
                        content=self.log_list,
                        border=ft.Border.all(1, ft.Colors.GREY_300),
                        border_radius=5,
                        padding=10,
                        expand=True,
                    ),
                ],
                spacing=5,
                expand=True,
            ),
            expand=True,
        )

    def add(self, message: str, level: str = "info"):
        """Add a log entry.

        Args:
            message: Log message
            level: "info", "warning", "error", "success" or "final"
        """
        entry = f"[{datetime.now().strftime('%H:%M:%S')}] {message}"
        weight = ft.FontWeight.BOLD if level == "final" else None
        self.log_list.controls.append(
            ft.Text(entry, color=LEVEL_COLORS.get(level), weight=weight, size=12)
        )
        self._log_entries.append(entry)
        if self.page.controls:
            self.page.update()

    def clear(self):
        """Clear all log entries."""
        self.log_list.controls.clear()
        self._log_entries.clear()
        self.page.update()

    def get_text(self) -> str:
        """Get all log text as single string."""
        return "\n".join(self._log_entries)

    async def _on_copy_click(self, e):
        await ft.Clipboard().set(self.get_text())
        self.add(Strings.LOG_COPIED, level="info")

    async def _on_copy_debug_click(self, e):
        debug_content = self._get_debug_log() if self._get_debug_log else ""
        if debug_content:
            await ft.Clipboard().set(debug_content)
            self.add(Strings.DEBUG_LOG_COPIED, level="info")
        else:
            self.add("No debug log available yet", level="warning")

    def _on_clear_click(self, e):
        self.clear()
