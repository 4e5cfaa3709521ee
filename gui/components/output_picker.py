"""Output folder selection component."""

from pathlib import Path
from typing import Callable

import flet as ft

from ..strings import Strings


def has_presets(path: str) -> bool:
    """Check if folder already holds visible files (ignoring hidden ones)."""
    folder = Path(path)
    if not folder.is_dir():
        return False
    return any(not f.name.startswith(".") for f in folder.iterdir())


class OutputPicker:
    """Output folder picker with path display."""

    def __init__(
        self,
        page: ft.Page,
        file_picker: ft.FilePicker,
        on_selected: Callable[[str], None],
        log_callback: Callable[[str, str], None],
    ):
        """Initialize output picker.

        Args:
            page: Flet page instance
            file_picker: FilePicker service
            on_selected: Callback when folder is selected
            log_callback: Callback for logging (message, level)
        """
        self.page = page
        self.file_picker = file_picker
        self.on_selected = on_selected
        self.log = log_callback
        self.selected_path: str | None = None

        self.path_field = ft.TextField(
            label=Strings.OUTPUT_FOLDER,
            read_only=True,
            expand=True,
            hint_text=Strings.OUTPUT_HINT,
        )
        self.container = ft.Container(
            content=ft.Row(
                [self.path_field, ft.Button(Strings.BROWSE, on_click=self._on_browse)],
            ),
            padding=10,
            border=ft.Border.all(1, ft.Colors.GREY_300),
            border_radius=8,
        )

    async def _on_browse(self, e):
        """Handle browse button click."""
        result = await self.file_picker.get_directory_path(
            dialog_title=Strings.SELECT_OUTPUT_TITLE
        )
        if not result:
            return

        self.path_field.value = result
        self.selected_path = result
        self.log(f"Output folder: {result}", "info")
        if has_presets(result):
            self.log(Strings.OUTPUT_NOT_EMPTY_WARNING, "warning")

        self.on_selected(result)
        self.path_field.update()
