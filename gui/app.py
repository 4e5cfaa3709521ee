"""Main Flet application."""

import flet as ft

from xyconv import __version__ as xyconv_version

from .components import InputSelector, LogView, OptionsPanel, OutputPicker
from .converter import ConverterBridge
from .strings import Strings


class XyconvApp:
    """Main application class."""

    def __init__(self, page: ft.Page):
        """Initialize the application.

        Args:
            page: Flet page instance
        """
        self.page = page
        self._output_path: str | None = None
        self._instruments = []

        self._setup_page()
        self._setup_services()
        self._create_components()
        self._build_layout()

        self.log_view.add(Strings.READY_MESSAGE, "info")
        self.log_view.add(
            f"xyconv v{xyconv_version} (Flet {ft.version.__version__})", "info"
        )

    def _setup_page(self):
        """Configure page properties."""
        self.page.title = Strings.APP_TITLE
        self.page.window.width = 550
        self.page.window.height = 840
        self.page.padding = 20

    def _setup_services(self):
        """Register page services."""
        self.file_picker = ft.FilePicker()
        self.page.services.append(self.file_picker)

    def _create_components(self):
        """Create all GUI components."""
        # Converter bridge (created first for debug log callback)
        self.converter = ConverterBridge(self._gui_log)

        self.log_view = LogView(
            page=self.page,
            get_debug_log=self.converter.get_debug_log,
        )
        self.output_picker = OutputPicker(
            page=self.page,
            file_picker=self.file_picker,
            on_selected=self._on_output_selected,
            log_callback=self._gui_log,
        )
        self.options_panel = OptionsPanel(page=self.page)
        self.input_selector = InputSelector(
            page=self.page,
            file_picker=self.file_picker,
            on_folder_selected=self._on_input_selected,
            on_convert=self._on_convert,
            on_cancel=self._on_cancel,
        )

    def _build_layout(self):
        """Build the page layout."""
        self.page.add(
            ft.Text(
                Strings.APP_TITLE,
                size=20,
                weight=ft.FontWeight.BOLD,
            ),
            ft.Container(height=10),
            self.output_picker.container,
            ft.Container(height=10),
            self.options_panel.container,
            ft.Container(height=10),
            self.input_selector.container,
            ft.Container(height=10),
            self.log_view.container,
        )

    def _gui_log(self, message: str, level: str = "info"):
        """Log callback for GUI."""
        self.log_view.add(message, level)

    def _on_output_selected(self, path: str):
        """Handle output folder selection."""
        self._output_path = path
        self.input_selector.set_enabled(True)

    async def _on_input_selected(self, folder: str, library: bool) -> int:
        """Scan the selected folder and remember the instruments found."""
        mode = "library" if library else "directory"
        self._gui_log(Strings.SCANNING.format(mode=mode, folder=folder), "info")

        self._instruments = await self.converter.scan(folder, library=library)
        count = len(self._instruments)
        if count:
            self._gui_log(Strings.SCAN_COMPLETE.format(count=count), "success")
        else:
            self._gui_log(Strings.NO_INSTRUMENTS_FOUND.format(folder=folder), "error")
        return count

    async def _on_convert(self):
        """Convert the scanned instruments with the current options."""
        if not self._output_path:
            self._gui_log(Strings.SELECT_OUTPUT_FIRST, "error")
            return

        options = self.options_panel.get_options()
        self._gui_log(
            Strings.STARTING_CONVERSION.format(count=len(self._instruments)),
            "info",
        )

        self.input_selector.set_converting(True)
        try:
            presets, skipped = await self.converter.convert_instruments(
                instruments=self._instruments,
                output_dir=self._output_path,
                sample_rate=options.sample_rate,
                prefix=options.prefix,
                middle_c_octave=options.middle_c_octave,
                test_run=options.test_run,
                zip_output=options.zip_output,
            )
            self._gui_log(
                Strings.CONVERSION_RESULT.format(presets=presets, skipped=skipped),
                "final",
            )
            await self._show_completion_dialog(presets, skipped)
        finally:
            self.input_selector.set_converting(False)
            self.input_selector.set_instrument_count(len(self._instruments))

    def _on_cancel(self):
        """Stop the conversion after the current instrument."""
        self._gui_log(Strings.CANCELLING, "warning")
        self.converter.cancel()

    async def _show_completion_dialog(self, presets: int, skipped: int):
        """Show completion dialog."""
        dialog = ft.AlertDialog(
            modal=True,
            title=ft.Text(Strings.CONVERSION_COMPLETE),
            content=ft.Text(
                f"{Strings.CONVERSION_RESULT.format(presets=presets, skipped=skipped)}\n\n"
                f"Output: {self._output_path}"
            ),
            actions=[
                ft.TextButton(
                    Strings.OK,
                    on_click=lambda e: self.page.pop_dialog(),
                ),
            ],
            actions_alignment=ft.MainAxisAlignment.END,
        )
        self.page.show_dialog(dialog)
