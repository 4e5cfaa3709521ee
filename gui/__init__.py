"""OP-XY Multisample Converter GUI package."""

__version__ = "1.0.0"

from .app import XyconvApp
from .strings import Strings

__all__ = ["XyconvApp", "Strings", "__version__"]
