"""Input folder/library selection component."""

from pathlib import Path
from typing import Awaitable, Callable

import flet as ft

from ..strings import Strings


class InputSelector:
    """Folder and library selection buttons plus the Convert button."""

    def __init__(
        self,
        page: ft.Page,
        file_picker: ft.FilePicker,
        on_folder_selected: Callable[[str, bool], Awaitable[int]],
        on_convert: Callable[[], Awaitable[None]],
        on_cancel: Callable[[], None],
    ):
        """Initialize input selector.

        Args:
            page: Flet page instance
            file_picker: FilePicker service
            on_folder_selected: Callback(folder, library) returning the number
                of instruments found
            on_convert: Callback when Convert is clicked
            on_cancel: Callback when Cancel is clicked
        """
        self.page = page
        self.file_picker = file_picker
        self.on_folder_selected = on_folder_selected
        self.on_convert = on_convert
        self.on_cancel = on_cancel

        # Remember last directory for better UX
        self._last_directory: str | None = None

        self.select_folder_btn = ft.Button(
            Strings.SELECT_FOLDER,
            icon=ft.Icons.FOLDER_OPEN,
            on_click=self._on_select_folder,
            expand=True,
            disabled=True,
        )
        self.select_library_btn = ft.Button(
            Strings.SELECT_LIBRARY,
            icon=ft.Icons.LIBRARY_MUSIC,
            on_click=self._on_select_library,
            expand=True,
            disabled=True,
        )
        self.convert_btn = ft.FilledButton(
            Strings.CONVERT,
            icon=ft.Icons.PLAY_ARROW,
            on_click=self._on_convert_click,
            disabled=True,
        )
        self.cancel_btn = ft.TextButton(
            Strings.CANCEL,
            on_click=self._on_cancel_click,
            visible=False,
        )
        self.count_text = ft.Text("", size=11, color=ft.Colors.GREY_700)

        self.container = self._build()

    def _build(self) -> ft.Container:
        """Build the input selector container."""
        return ft.Container(
            content=ft.Column(
                [
                    ft.Text(
                        Strings.SELECT_INPUT,
                        weight=ft.FontWeight.BOLD,
                        size=12,
                    ),
                    ft.Row(
                        [self.select_folder_btn, self.select_library_btn],
                        spacing=10,
                    ),
                    ft.Text(
                        Strings.INPUT_HINT,
                        size=11,
                        color=ft.Colors.GREY_500,
                        text_align=ft.TextAlign.CENTER,
                    ),
                    ft.Row(
                        [self.count_text, ft.Row([self.cancel_btn, self.convert_btn])],
                        alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
                    ),
                ],
                spacing=8,
                horizontal_alignment=ft.CrossAxisAlignment.CENTER,
            ),
            padding=15,
            border=ft.Border.all(1, ft.Colors.GREY_300),
            border_radius=8,
        )

    def set_enabled(self, enabled: bool):
        """Enable or disable folder selection buttons."""
        self.select_folder_btn.disabled = not enabled
        self.select_library_btn.disabled = not enabled
        self.page.update()

    def set_instrument_count(self, count: int):
        """Show instrument count; Convert is enabled when count > 0."""
        self.count_text.value = f"{count} instrument(s) found." if count else ""
        self.convert_btn.disabled = count == 0
        self.page.update()

    def set_converting(self, converting: bool):
        """Lock all buttons while a conversion is running."""
        self.select_folder_btn.disabled = converting
        self.select_library_btn.disabled = converting
        self.convert_btn.disabled = converting
        self.cancel_btn.visible = converting
        self.page.update()

    async def _pick_folder(self, title: str) -> Path | None:
        result = await self.file_picker.get_directory_path(
            dialog_title=title,
            initial_directory=self._last_directory,
        )
        if not result:
            return None
        self._last_directory = result
        return Path(result)

    async def _on_select_folder(self, e):
        """Handle instrument folder selection."""
        folder = await self._pick_folder(Strings.SELECT_INPUT_FOLDER_TITLE)
        if folder:
            count = await self.on_folder_selected(str(folder), False)
            self.set_instrument_count(count)

    async def _on_select_library(self, e):
        """Handle sample library selection."""
        folder = await self._pick_folder(Strings.SELECT_LIBRARY_TITLE)
        if folder:
            count = await self.on_folder_selected(str(folder), True)
            self.set_instrument_count(count)

    async def _on_convert_click(self, e):
        """Handle Convert button click."""
        await self.on_convert()

    def _on_cancel_click(self, e):
        """Handle Cancel button click."""
        self.on_cancel()
