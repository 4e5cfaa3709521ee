"""GUI components for OP-XY Multisample Converter."""

from .input_selector import InputSelector
from .log_view import LogView
from .options_panel import ConversionOptions, OptionsPanel
from .output_picker import OutputPicker

__all__ = ["OutputPicker", "OptionsPanel", "ConversionOptions", "InputSelector", "LogView"]
