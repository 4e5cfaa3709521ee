"""Localization strings for GUI.

All user-facing strings are centralized here for future localization.
"""


class Strings:
    """Centralized strings for the GUI."""

    # Window
    APP_TITLE = "OP-XY Multisample Converter"

    # Output section
    OUTPUT_FOLDER = "OUTPUT FOLDER"
    OUTPUT_HINT = "Select output folder first"
    BROWSE = "Browse"
    OUTPUT_NOT_EMPTY_WARNING = (
        "Warning: Output folder is not empty. Existing presets may be overwritten."
    )

    # Options section
    OPTIONS = "OPTIONS"
    SAMPLE_RATE_LABEL = "Sample rate"
    MIDDLE_C_LABEL = "Middle C"
    MIDDLE_C3 = "C3 = 60"
    MIDDLE_C4 = "C4 = 60"
    PREFIX_LABEL = "Prefix"
    PREFIX_HINT = "zzm"
    TEST_RUN = "Test run (first instrument only)"
    ZIP_OUTPUT = "Create ZIP archive"

    # Options help dialog
    OPTIONS_HELP_TITLE = "Options Help"
    OPTIONS_HELP_TEXT = (
        "Sample rate\n"
        "  Rate of the generated WAV files (22050 Hz keeps presets small).\n\n"
        "Middle C\n"
        "  How octaves in sample names are counted.\n"
        "  C3 = 60: 'Bass C2.wav' plays at key 48.\n"
        "  C4 = 60: 'Bass C2.wav' plays at key 36.\n\n"
        "Prefix\n"
        "  Prefix for preset and folder names (default: zzm).\n\n"
        "Test run\n"
        "  Convert only the first instrument found.\n\n"
        "Create ZIP archive\n"
        "  Write all presets into one .zip instead of folders."
    )

    # Input section
    SELECT_INPUT = "SELECT INPUT"
    SELECT_FOLDER = "Select Folder"
    SELECT_LIBRARY = "Select Library"
    CONVERT = "Convert"
    CANCEL = "Cancel"
    INPUT_HINT = "Folders with pitched .wav files (e.g. 'Piano C4.wav')"

    # Log section
    CONVERSION_LOG = "CONVERSION LOG"
    COPY = "Copy"
    COPY_DEBUG = "Copy Debug"
    CLEAR = "Clear"
    LOG_COPIED = "Log copied to clipboard"
    DEBUG_LOG_COPIED = "Debug log copied to clipboard (detailed output)"
    READY_MESSAGE = "Ready. Select output folder to begin."

    # Dialogs
    SELECT_OUTPUT_TITLE = "Select Output Folder"
    SELECT_INPUT_FOLDER_TITLE = "Select Folder Containing Instrument Folders"
    SELECT_LIBRARY_TITLE = "Select Sample Library"
    CONVERSION_COMPLETE = "Conversion Complete"
    OK = "OK"

    # Errors
    SELECT_OUTPUT_FIRST = "Please select output folder first"
    NO_INSTRUMENTS_FOUND = "No instrument folders with .wav files found in {folder}"

    # Progress
    SCANNING = "Scanning {mode}: {folder}..."
    SCAN_COMPLETE = "Scan complete. Found {count} instrument(s)."
    STARTING_CONVERSION = "Starting conversion of {count} instrument(s)..."
    CONVERTING_INSTRUMENT = "[{current}/{total}] Converting {name}..."
    CONVERSION_RESULT = "Converted {presets} preset(s), {skipped} sample(s) skipped."
    CANCELLING = "Cancelling after current instrument..."
    CANCELLED = "Conversion cancelled by user"
    ZIP_CREATED = "Successfully created {path}"
