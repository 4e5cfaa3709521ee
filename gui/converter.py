"""Bridge between GUI and xyconv.py conversion functions."""

import asyncio
import io
from contextlib import redirect_stdout
from pathlib import Path
from typing import Callable

from xyconv import (
    DEFAULT_MAX_NAME_LENGTH,
    DEFAULT_PREFIX,
    ConversionError,
    ConversionStats,
    FoundInstrument,
    PresetNameRegistry,
    ValidationError,
    convert_instrument,
    default_zip_name,
    find_instruments,
    find_library_instruments,
    load_instrument,
    validate_settings,
    write_presets,
    write_presets_zip,
)

from .strings import Strings


class ConverterBridge:
    """Bridges GUI to xyconv.py scanning and conversion functions."""

    def __init__(self, log_callback: Callable[[str, str], None]):
        """Initialize bridge with log callback.

        Args:
            log_callback: Function(message, level) for logging
        """
        self.log = log_callback
        self._cancel_requested = False
        self._debug_log: list[str] = []
        self.registry = PresetNameRegistry()
        self.stats = ConversionStats()

    def get_debug_log(self) -> str:
        """Get the detailed debug log from last scan/conversion.

        Returns:
            str: Full stdout output
        """
        return "\n".join(self._debug_log)

    def clear_debug_log(self):
        """Clear the debug log."""
        self._debug_log.clear()

    def _capture(self, func, *args, **kwargs):
        """Run func with stdout captured into the debug log (runs in thread)."""
        stdout_capture = io.StringIO()
        try:
            with redirect_stdout(stdout_capture):
                return func(*args, **kwargs)
        finally:
            captured = stdout_capture.getvalue()
            if captured:
                self._debug_log.append(captured)

    async def scan(self, folder: str, library: bool = False) -> list[FoundInstrument]:
        """Find instruments in a folder or sample library.

        Args:
            folder: Folder to scan
            library: Treat folder as library of packs

        Returns:
            list: FoundInstrument entries
        """
        self.clear_debug_log()
        finder = find_library_instruments if library else find_instruments
        try:
            found = await asyncio.to_thread(self._capture, finder, folder)
        except OSError as e:
            self.log(f"Error scanning {folder}: {e}", "error")
            return []
        return found

    async def convert_instruments(
        self,
        instruments: list[FoundInstrument],
        output_dir: str,
        sample_rate: int,
        prefix: str,
        middle_c_octave: int,
        test_run: bool = False,
        zip_output: bool = False,
    ) -> tuple[int, int]:
        """Convert instruments asynchronously.

        Presets are collected first and written at the end, so cancelling
        leaves the output folder untouched.

        Args:
            instruments: Instruments from scan()
            output_dir: Output folder
            sample_rate: Output sample rate in Hz
            prefix: Name prefix (empty = default)
            middle_c_octave: Octave of middle C in sample names
            test_run: Convert only the first instrument
            zip_output: Write a single ZIP archive

        Returns:
            tuple: (preset_count, skipped_sample_count)
        """
        self._cancel_requested = False
        self.clear_debug_log()
        self.stats.reset()
        self.registry.reset()

        try:
            prefix = validate_settings(
                sample_rate, DEFAULT_MAX_NAME_LENGTH, prefix or DEFAULT_PREFIX, 1
            )
        except ValidationError as e:
            self.log(f"Validation error: {e}", "error")
            return 0, 0

        if test_run and instruments:
            self.log("Test run enabled. Processing first instrument only.", "info")
            instruments = instruments[:1]

        presets = []
        total = len(instruments)
        for i, found in enumerate(instruments, 1):
            if self._cancel_requested:
                self.log(Strings.CANCELLED, "warning")
                return 0, self.stats.skipped_samples

            name = found.logical_path or Path(found.directory).name
            self.log(Strings.CONVERTING_INSTRUMENT.format(current=i, total=total, name=name), "info")

            try:
                preset = await asyncio.to_thread(
                    self._convert_single, found, sample_rate, prefix, middle_c_octave
                )
            except (ConversionError, OSError) as e:
                self.log(f"  -> Error: {e}", "error")
                continue

            for filename, reason in preset.skipped:
                self.log(f"  - Skipping {filename}: {reason}", "error")
            self.log(f"  -> {preset.folder} ({len(preset.samples)} samples)", "success")
            presets.append(preset)

        if zip_output:
            zip_path = Path(output_dir) / default_zip_name(prefix)
            await asyncio.to_thread(self._capture, write_presets_zip, presets, zip_path)
            self.log(Strings.ZIP_CREATED.format(path=zip_path), "success")
        else:
            await asyncio.to_thread(self._capture, write_presets, presets, output_dir)

        return len(presets), self.stats.skipped_samples

    def _convert_single(self, found, sample_rate, prefix, middle_c_octave):
        """Load and convert one instrument (runs in thread)."""
        return self._capture(
            convert_instrument,
            load_instrument(found),
            self.registry,
            target_rate=sample_rate,
            prefix=prefix,
            middle_c_octave=middle_c_octave,
            stats=self.stats,
        )

    def cancel(self):
        """Request cancellation of ongoing conversion."""
        self._cancel_requested = True
