"""Conversion options panel component."""

from dataclasses import dataclass

import flet as ft

from xyconv import DEFAULT_MIDDLE_C_OCTAVE, DEFAULT_SAMPLE_RATE

from ..strings import Strings

SAMPLE_RATES = [22050, 32000, 44100, 48000]


@dataclass
class ConversionOptions:
    """Conversion options data class."""

    sample_rate: int = DEFAULT_SAMPLE_RATE
    middle_c_octave: int = DEFAULT_MIDDLE_C_OCTAVE
    prefix: str = ""
    test_run: bool = False
    zip_output: bool = False


class OptionsPanel:
    """Options panel with sample rate, naming and output settings."""

    def __init__(self, page: ft.Page):
        """Initialize options panel.

        Args:
            page: Flet page instance (for dialogs)
        """
        self.page = page

        self.sample_rate_dd = ft.Dropdown(
            label=Strings.SAMPLE_RATE_LABEL,
            value=str(DEFAULT_SAMPLE_RATE),
            options=[ft.dropdown.Option(str(rate), f"{rate} Hz") for rate in SAMPLE_RATES],
            width=150,
            dense=True,
        )
        self.middle_c_dd = ft.Dropdown(
            label=Strings.MIDDLE_C_LABEL,
            value=str(DEFAULT_MIDDLE_C_OCTAVE),
            options=[
                ft.dropdown.Option("3", Strings.MIDDLE_C3),
                ft.dropdown.Option("4", Strings.MIDDLE_C4),
            ],
            width=130,
            dense=True,
        )
        self.prefix_field = ft.TextField(
            label=Strings.PREFIX_LABEL,
            hint_text=Strings.PREFIX_HINT,
            width=100,
            dense=True,
        )
        self.test_run_cb = ft.Checkbox(label=Strings.TEST_RUN, value=False)
        self.zip_cb = ft.Checkbox(label=Strings.ZIP_OUTPUT, value=False)

        self.options_help_btn = ft.IconButton(
            icon=ft.Icons.HELP_OUTLINE,
            icon_size=18,
            tooltip=Strings.OPTIONS_HELP_TITLE,
            on_click=self._show_options_help,
        )

        self.container = self._build()

    def _show_options_help(self, e):
        """Show options help dialog."""
        dialog = ft.AlertDialog(
            modal=False,
            title=ft.Text(Strings.OPTIONS_HELP_TITLE),
            content=ft.Text(Strings.OPTIONS_HELP_TEXT),
            actions=[
                ft.TextButton(Strings.OK, on_click=lambda e: self.page.pop_dialog()),
            ],
            actions_alignment=ft.MainAxisAlignment.END,
        )
        self.page.show_dialog(dialog)

    def _build(self) -> ft.Container:
        """Build the options panel container."""
        return ft.Container(
            content=ft.Column(
                [
                    ft.Row(
                        [
                            ft.Text(
                                Strings.OPTIONS,
                                weight=ft.FontWeight.BOLD,
                                size=12,
                            ),
                            self.options_help_btn,
                        ],
                        alignment=ft.MainAxisAlignment.SPACE_BETWEEN,
                    ),
                    ft.Row([self.sample_rate_dd, self.middle_c_dd, self.prefix_field]),
                    ft.Row([self.test_run_cb]),
                    ft.Row([self.zip_cb]),
                ],
                spacing=8,
            ),
            padding=10,
            border=ft.Border.all(1, ft.Colors.GREY_300),
            border_radius=8,
        )

    def get_options(self) -> ConversionOptions:
        """Get current options as dataclass."""
        try:
            sample_rate = int(self.sample_rate_dd.value)
        except (TypeError, ValueError):
            sample_rate = DEFAULT_SAMPLE_RATE
        try:
            middle_c_octave = int(self.middle_c_dd.value)
        except (TypeError, ValueError):
            middle_c_octave = DEFAULT_MIDDLE_C_OCTAVE

        return ConversionOptions(
            sample_rate=sample_rate,
            middle_c_octave=middle_c_octave,
            prefix=(self.prefix_field.value or "").strip(),
            test_run=self.test_run_cb.value or False,
            zip_output=self.zip_cb.value or False,
        )
