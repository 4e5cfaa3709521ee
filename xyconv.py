#!/usr/bin/env python3
"""OP-XY multisample converter.

Converts folders of pitched WAV samples into OP-XY multisampler presets:
one folder per instrument holding resampled 16-bit WAV files and a
patch.json that maps MIDI key ranges to the samples.

Usage: xyconv.py <input-dir> <output> [--library] [--zip]

Copyright (c) 2025, xyconv contributors
"""

import argparse
import copy
import io
import itertools
import json
import math
import os
import re
import struct
import subprocess
import sys
import threading
import zipfile
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType

import numpy as np
import soundfile as sf
from scipy.signal import resample_poly

__version__ = "1.0.0"


# =============================================================================
# Constants
# =============================================================================

DEFAULT_SAMPLE_RATE = 22050
DEFAULT_MAX_NAME_LENGTH = 20
# Room for a "-NN" suffix plus one base character
MIN_NAME_LENGTH = 4
DEFAULT_PREFIX = "zzm"
DEFAULT_MIDDLE_C_OCTAVE = 3
DEFAULT_WORKERS = 4

WAV_HEADER_LENGTH = 44
MAX_AMPLITUDE = 0x7FFF

NOTE_LETTERS = "ABCDEFG"
# Semitone offsets for A..G with C3 = 60
NOTE_OFFSET = [33, 35, 24, 26, 28, 29, 31]

NOTE_PATTERN = re.compile(r"([A-G][b#]?)(\d+)", re.IGNORECASE | re.ASCII)
TOKEN_SEPARATOR = re.compile(r"[\s_-]+")
NUMERIC_TOKEN = re.compile(r"\d+", re.ASCII)
SAMPLE_WORD = re.compile(r" samples?", re.IGNORECASE)
NAME_DISALLOWED = re.compile(r"[^a-zA-Z0-9 #\-().]+")
PATH_DISALLOWED = re.compile(r"[^a-zA-Z0-9 \-().]+")

PATCH_FILENAME = "patch.json"


# =============================================================================
# Patch Template
# =============================================================================
#
# Static multisampler defaults expected by the OP-XY. Field names, nesting
# and values are fixed; only "regions" changes between presets.
#
# =============================================================================

PATCH_TEMPLATE = MappingProxyType(
    {
        "engine": {
            "bendrange": 13653,
            "highpass": 0,
            "modulation": {
                "aftertouch": {"amount": 30719, "target": 4096},
                "modwheel": {"amount": 32767, "target": 10240},
                "pitchbend": {"amount": 16383, "target": 0},
                "velocity": {"amount": 16383, "target": 0},
            },
            "params": [16384, 16384, 16384, 16384, 16384, 16384, 16384, 16384],
            "playmode": "poly",
            "portamento.amount": 0,
            "portamento.type": 32767,
            "transpose": 0,
            "tuning.root": 0,
            "tuning.scale": 0,
            "velocity.sensitivity": 10240,
            "volume": 16466,
            "width": 3072,
        },
        "envelope": {
            "amp": {"attack": 0, "decay": 20295, "release": 16383, "sustain": 14989},
            "filter": {"attack": 0, "decay": 16895, "release": 19968, "sustain": 16896},
        },
        "fx": {
            "active": False,
            "params": [19661, 0, 7391, 24063, 0, 32767, 0, 0],
            "type": "svf",
        },
        "lfo": {
            "active": False,
            "params": [19024, 32255, 4048, 17408, 0, 0, 0, 0],
            "type": "element",
        },
        "octave": 0,
        "platform": "OP-XY",
        "regions": [],
        "type": "multisampler",
        "version": 4,
    }
)


# =============================================================================
# Errors
# =============================================================================


class ConversionError(Exception):
    """Base class for conversion errors."""


class ValidationError(ConversionError):
    """Invalid user input or settings."""


class FfmpegNotFound(ConversionError):
    """ffmpeg or ffprobe is not installed."""


class SampleError(ConversionError):
    """A single sample cannot be used. The rest of the instrument continues."""

    def __init__(self, message, filename=None):
        super().__init__(message)
        self.filename = filename


class NoPitchFound(SampleError):
    """Filename has no token that looks like a note (e.g. C4, A#3)."""


class BadNoteFormat(SampleError):
    """Malformed note string."""


class DecodeError(SampleError):
    """Audio bytes cannot be decoded."""


class UnsupportedChannelLayout(SampleError):
    """Decoded audio is neither mono nor stereo."""


# =============================================================================
# Conversion Statistics
# =============================================================================


class ConversionStats:
    """Collects statistics and warnings during conversion."""

    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self):
        """Reset all statistics."""
        # Instrument counts
        self.instruments_processed = 0
        self.empty_instruments = 0

        # Sample counts
        self.total_samples = 0
        self.resampled_samples = 0
        self.skipped_samples = 0

        # Warnings: list of (filename, message)
        self.warnings = []

    def add_warning(self, filename, message):
        """Add a warning with associated filename."""
        with self._lock:
            self.warnings.append((filename, message))

    def print_summary(self, settings=None):
        """Print conversion summary."""
        print("\n" + "=" * 50)
        print("CONVERSION SUMMARY")
        print("=" * 50)

        if settings:
            print("\n--- Settings ---")
            print(f"Sample rate: {settings.get('sample_rate', DEFAULT_SAMPLE_RATE)} Hz")
            print(f"Name prefix: {settings.get('prefix', DEFAULT_PREFIX)}")
            print(
                f"Max name length: {settings.get('max_name_length', DEFAULT_MAX_NAME_LENGTH)}"
            )
            middle_c = settings.get("middle_c_octave", DEFAULT_MIDDLE_C_OCTAVE)
            print(f"Middle C: C{middle_c} = 60")
            print(f"Decoder: {settings.get('decoder', SoundFileDecoder.name)}")
            print(f"Library mode: {'Yes' if settings.get('library') else 'No'}")
            print(f"Test run: {'Yes' if settings.get('test_run') else 'No'}")
            print(f"ZIP output: {'Yes' if settings.get('zip') else 'No'}")

        print("\n--- Statistics ---")
        print(f"Instruments processed: {self.instruments_processed}", end="")
        if self.empty_instruments > 0:
            print(f" (without samples: {self.empty_instruments})")
        else:
            print()
        print(f"Samples converted: {self.total_samples}", end="")
        if self.resampled_samples > 0:
            print(f" (resampled: {self.resampled_samples})")
        else:
            print()
        print(f"Samples skipped: {self.skipped_samples}")

        if self.warnings:
            print(f"\n--- Warnings ({len(self.warnings)}) ---")
            for filename, message in self.warnings:
                print(f"  - {filename}: {message}")
        else:
            print("\n--- No warnings ---")

        print("=" * 50)


# Global stats instance
conversion_stats = ConversionStats()


# =============================================================================
# Utility Functions
# =============================================================================


def check_ffmpeg():
    """Check if ffmpeg and ffprobe are available."""
    for tool in ("ffmpeg", "ffprobe"):
        try:
            result = subprocess.run([tool, "-version"], capture_output=True, text=True)
        except FileNotFoundError:
            return False
        if result.returncode != 0:
            return False
    return True


def sanitize_name(name, strip_extension=True):
    """Sanitize a sample name.

    Drops the extension, then every character other than letters, digits,
    space, '#', '-', '(', ')' and '.'.
    """
    if strip_extension:
        name = os.path.splitext(name)[0]
    return NAME_DISALLOWED.sub("", name).strip()


def sanitize_for_path(name):
    """Sanitize a folder name (like sanitize_name, but '#' is dropped too)."""
    return PATH_DISALLOWED.sub("", name).strip()


# =============================================================================
# Pitch Parsing
# =============================================================================


def to_pitch_number(note, middle_c_octave=DEFAULT_MIDDLE_C_OCTAVE):
    """Convert a note string to a MIDI pitch number.

    The note is a letter A-G, an optional accidental ('#' sharp, 'b' flat)
    and an octave. With the default middle_c_octave of 3, C3 = 60 and
    C2 = 48. Pass 4 for scientific pitch notation (C4 = 60). The result is
    not clamped to 0-127.

    Args:
        note: Note string (e.g. "C4", "a#3", "Bb2", "C-1")
        middle_c_octave: Octave number that maps C to 60

    Returns:
        int: Pitch number

    Raises:
        BadNoteFormat: If the note cannot be parsed
    """
    string = note.replace(" ", "")
    if len(string) < 2:
        raise BadNoteFormat(f"Bad note format: '{note}'")

    note_idx = NOTE_LETTERS.find(string[0].upper())
    if note_idx < 0:
        raise BadNoteFormat(f"Bad note: '{note}'")

    sharpen = 0
    if string[1] == "#":
        sharpen = 1
    elif string[1].lower() == "b":
        sharpen = -1

    try:
        octave = int(string[1 + abs(sharpen) :])
    except ValueError:
        raise BadNoteFormat(f"Bad octave in note: '{note}'") from None

    shift = 12 * (middle_c_octave - DEFAULT_MIDDLE_C_OCTAVE)
    return octave * 12 + NOTE_OFFSET[note_idx] + sharpen - shift


def parse_filename(filename, middle_c_octave=DEFAULT_MIDDLE_C_OCTAVE):
    """Extract base name and pitch from a sample filename.

    The stem is split on whitespace, '_' and '-'. The first token containing
    a note (e.g. "C4", "a#3") gives the pitch; later tokens are ignored.
    Non-numeric tokens before it form the base name.

    Args:
        filename: Sample filename (e.g. "Strings_Lo_C#3.wav")
        middle_c_octave: See to_pitch_number()

    Returns:
        tuple: (base_name, pitch_number)

    Raises:
        NoPitchFound: If no token contains a note
    """
    stem = os.path.splitext(filename)[0]
    base_parts = []

    for part in TOKEN_SEPARATOR.split(stem):
        match = NOTE_PATTERN.search(part)
        if match:
            note = f"{match.group(1)}{int(match.group(2))}"
            base_name = sanitize_name(" ".join(base_parts), strip_extension=False)
            return base_name, to_pitch_number(note, middle_c_octave)
        if part and not NUMERIC_TOKEN.fullmatch(part):
            base_parts.append(part)

    raise NoPitchFound(
        f"Filename '{filename}' does not contain a recognizable pitch (e.g., A#3, C4).",
        filename,
    )


# =============================================================================
# Audio Decoding
# =============================================================================


@dataclass
class DecodedAudio:
    """Float samples in [-1, 1] with shape (channels, frames)."""

    samples: np.ndarray
    sample_rate: int

    @property
    def channels(self):
        return self.samples.shape[0]

    @property
    def frames(self):
        return self.samples.shape[1]

    @property
    def duration(self):
        return self.frames / self.sample_rate


class Decoder(ABC):
    """Turns raw audio file bytes into DecodedAudio."""

    name = "decoder"

    @abstractmethod
    def decode(self, raw_audio):
        """Decode audio bytes.

        Raises:
            DecodeError: If the bytes are not decodable audio
        """
        raise NotImplementedError


class SoundFileDecoder(Decoder):
    """libsndfile decoder: integer and float PCM WAV (including extensible), AIFF, FLAC."""

    name = "soundfile"

    def decode(self, raw_audio):
        try:
            data, sample_rate = sf.read(io.BytesIO(raw_audio), dtype="float64", always_2d=True)
        except (sf.SoundFileError, RuntimeError) as e:
            raise DecodeError(f"Unable to decode audio data: {e}") from e

        if data.shape[1] < 1 or sample_rate <= 0:
            raise DecodeError(
                f"Invalid audio format: {data.shape[1]} channels at {sample_rate} Hz"
            )

        # (frames, channels) -> (channels, frames)
        return DecodedAudio(data.T.copy(), sample_rate)


class FfmpegDecoder(Decoder):
    """Decoder for anything ffmpeg can read. Bytes are piped via stdin."""

    name = "ffmpeg"

    def _run(self, cmd, raw_audio):
        try:
            result = subprocess.run(cmd, input=raw_audio, capture_output=True)
        except FileNotFoundError:
            raise FfmpegNotFound(f"{cmd[0]} not found. Please install ffmpeg.") from None
        if result.returncode != 0:
            message = result.stderr.decode("utf-8", errors="replace").strip()
            raise DecodeError(f"{cmd[0]} failed: {message or 'unknown error'}")
        return result

    def probe(self, raw_audio):
        """Get (sample_rate, channels) of the first audio stream using ffprobe."""
        result = self._run(
            [
                "ffprobe",
                "-v",
                "error",
                "-select_streams",
                "a:0",
                "-show_entries",
                "stream=sample_rate,channels",
                "-of",
                "default=noprint_wrappers=1",
                "-i",
                "pipe:0",
            ],
            raw_audio,
        )
        info = {}
        for line in result.stdout.decode("utf-8", errors="replace").splitlines():
            key, _, value = line.partition("=")
            info[key.strip()] = value.strip()
        try:
            return int(info["sample_rate"]), int(info["channels"])
        except (KeyError, ValueError):
            raise DecodeError("No audio stream found") from None

    def decode(self, raw_audio):
        sample_rate, channels = self.probe(raw_audio)
        if channels < 1 or sample_rate <= 0:
            raise DecodeError(f"Invalid audio stream: {channels} channels at {sample_rate} Hz")

        result = self._run(
            [
                "ffmpeg",
                "-hide_banner",
                "-loglevel",
                "error",
                "-i",
                "pipe:0",
                "-vn",
                "-f",
                "f32le",
                "-acodec",
                "pcm_f32le",
                "pipe:1",
            ],
            raw_audio,
        )
        values = np.frombuffer(result.stdout, dtype="<f4").astype(np.float64)
        values = values[: len(values) - len(values) % channels]
        return DecodedAudio(values.reshape(-1, channels).T.copy(), sample_rate)


DECODERS = {
    SoundFileDecoder.name: SoundFileDecoder,
    FfmpegDecoder.name: FfmpegDecoder,
}


def get_decoder(name):
    """Create a decoder by name ("soundfile" or "ffmpeg")."""
    try:
        return DECODERS[name]()
    except KeyError:
        raise ValidationError(
            f"Unknown decoder: {name} (choose from {', '.join(DECODERS)})"
        ) from None


# =============================================================================
# Resampling & WAV Encoding
# =============================================================================
#
# Output WAV layout (44-byte canonical header, little-endian):
#
#   0  "RIFF"           4  36 + data size     8  "WAVE"
#   12 "fmt "           16 16 (fmt size)      20 1 (PCM)
#   22 channels         24 sample rate        28 byte rate
#   32 block align      34 16 (bits)          36 "data"
#   40 data size        44 interleaved int16 frames
#
# =============================================================================


@dataclass
class EncodedSample:
    """Resampled 16-bit WAV data for one sample."""

    wav_bytes: bytes
    frame_count: int
    channels: int
    source_rate: int


def resample_channels(samples, source_rate, target_rate):
    """Resample every channel to target_rate with polyphase filtering.

    Args:
        samples: Float array with shape (channels, frames)
        source_rate: Source sample rate in Hz
        target_rate: Target sample rate in Hz

    Returns:
        np.ndarray: Shape (channels, ceil(frames * target_rate / source_rate))
    """
    if source_rate == target_rate or samples.shape[1] == 0:
        return samples
    divisor = math.gcd(source_rate, target_rate)
    up = target_rate // divisor
    down = source_rate // divisor
    return resample_poly(samples, up, down, axis=1)


def encode_wav(samples, sample_rate):
    """Encode float samples as a canonical 16-bit PCM WAV.

    Args:
        samples: Float array with shape (channels, frames), 1 or 2 channels
        sample_rate: Sample rate written to the header

    Returns:
        bytes: 44-byte header followed by interleaved frames
    """
    channels, frames = samples.shape
    if channels not in (1, 2):
        raise UnsupportedChannelLayout(
            f"Expecting mono or stereo audio, got {channels} channels"
        )

    data_size = frames * channels * 2
    header = struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        data_size + 36,
        b"WAVE",
        b"fmt ",
        16,  # fmt chunk size
        1,  # PCM
        channels,
        sample_rate,
        sample_rate * channels * 2,  # byte rate
        channels * 2,  # block align
        16,  # bits per sample
        b"data",
        data_size,
    )

    clipped = np.clip(np.nan_to_num(samples), -1.0, 1.0)
    pcm = np.rint(clipped * MAX_AMPLITUDE).astype("<i2")
    # (frames, channels) in C order = interleaved
    return header + pcm.T.tobytes()


def resample_and_encode(raw_audio, target_sample_rate=DEFAULT_SAMPLE_RATE, decoder=None):
    """Decode, resample and re-encode one sample.

    Args:
        raw_audio: Input audio file bytes
        target_sample_rate: Output sample rate in Hz
        decoder: Decoder instance (default: SoundFileDecoder)

    Returns:
        EncodedSample

    Raises:
        DecodeError: If the bytes cannot be decoded
        UnsupportedChannelLayout: If the audio is not mono or stereo
    """
    if decoder is None:
        decoder = SoundFileDecoder()

    audio = decoder.decode(raw_audio)
    if audio.channels not in (1, 2):
        raise UnsupportedChannelLayout(
            f"Expecting mono or stereo audio, got {audio.channels} channels"
        )

    resampled = resample_channels(audio.samples, audio.sample_rate, target_sample_rate)
    return EncodedSample(
        wav_bytes=encode_wav(resampled, target_sample_rate),
        frame_count=resampled.shape[1],
        channels=audio.channels,
        source_rate=audio.sample_rate,
    )


# =============================================================================
# Key Ranges & Regions
# =============================================================================


@dataclass
class KeyZone:
    """Key range assigned to one sample."""

    lokey: int
    hikey: int
    pitch: int
    sample: object


def assign_ranges(samples):
    """Assign contiguous key ranges to samples sorted by pitch.

    Each sample covers the keys from the end of the previous range up to its
    own pitch. The last range always extends to 127. Duplicate pitches yield
    a range with lokey > hikey, which is returned as-is.

    Args:
        samples: Sequence of (pitch_number, sample), sorted by pitch

    Returns:
        list: KeyZone per sample, in input order
    """
    zones = []
    cursor = 0
    for pitch, sample in samples:
        zones.append(KeyZone(lokey=cursor, hikey=pitch, pitch=pitch, sample=sample))
        cursor = pitch + 1
    if zones:
        zones[-1].hikey = 127
    return zones


@dataclass
class Region:
    """One key region of a multisampler patch."""

    lokey: int
    hikey: int
    pitch_center: int
    frame_count: int
    sample_filename: str
    sample_start: int = 0
    sample_end: int | None = None

    def __post_init__(self):
        if self.sample_end is None:
            self.sample_end = self.frame_count

    def to_dict(self):
        return {
            "framecount": self.frame_count,
            "gain": 0,
            "hikey": self.hikey,
            "lokey": self.lokey,
            "loop.crossfade": 0,
            "loop.end": self.frame_count,
            "loop.onrelease": False,
            "loop.enabled": False,
            "loop.start": 0,
            "pitch.keycenter": self.pitch_center,
            "reverse": False,
            "sample": self.sample_filename,
            "sample.end": self.sample_end,
            "sample.start": self.sample_start,
            "tune": 0,
        }


# =============================================================================
# Preset Naming
# =============================================================================


class PresetNameRegistry:
    """Unique preset names for one conversion run.

    Call reset() before starting a new run. Safe to share between threads.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._names = set()
        self._counters = {}

    def reset(self):
        with self._lock:
            self._names.clear()
            self._counters.clear()

    def __contains__(self, name):
        with self._lock:
            return name in self._names

    def __len__(self):
        with self._lock:
            return len(self._names)

    def name(self, components, max_length=DEFAULT_MAX_NAME_LENGTH):
        """Build and register a unique preset name.

        Components are joined with '-' and truncated to max_length. Taken
        names get a "-N" suffix, cutting the base so the result still fits.

        Args:
            components: Name parts (empty parts are dropped)
            max_length: Maximum name length

        Returns:
            str: Registered name

        Raises:
            ValidationError: If no suffixed name fits in max_length
        """
        base = "-".join(part for part in components if part)[:max_length]

        with self._lock:
            final_name = base
            counter = self._counters.get(base, 0)
            while final_name in self._names:
                counter += 1
                suffix = f"-{counter}"
                if len(suffix) >= max_length:
                    raise ValidationError(
                        f"No unique name for '{base}' within {max_length} characters"
                    )
                final_name = base[: max_length - len(suffix)] + suffix
            if counter:
                self._counters[base] = counter
            self._names.add(final_name)
            return final_name


def preset_name_components(instrument_name, pack_short_name=None, prefix=DEFAULT_PREFIX):
    """Name parts for an instrument: [prefix, pack short name, instrument].

    " sample"/" samples" is removed from the instrument name and spaces
    become dashes.
    """
    cleaned = SAMPLE_WORD.sub("", instrument_name, count=1).strip()
    cleaned = re.sub(r"\s+", "-", sanitize_for_path(cleaned))
    if pack_short_name:
        return [prefix, pack_short_name, cleaned]
    return [prefix, cleaned]


# =============================================================================
# Patch Descriptor
# =============================================================================


def assemble(regions):
    """Build a patch descriptor from regions.

    Args:
        regions: Iterable of Region

    Returns:
        dict: Patch template copy with regions sorted by lokey
    """
    patch = copy.deepcopy(dict(PATCH_TEMPLATE))
    patch["regions"] = [region.to_dict() for region in sorted(regions, key=lambda r: r.lokey)]
    return patch


def serialize_descriptor(patch):
    """Serialize a patch descriptor as UTF-8 JSON (2-space indent)."""
    return json.dumps(patch, indent=2, ensure_ascii=False).encode("utf-8")


# =============================================================================
# Instruments & Presets
# =============================================================================


@dataclass
class Instrument:
    """Samples of one instrument folder.

    logical_path is relative to the scanned root, "/"-separated
    (e.g. "Bass/TestBass"). samples holds (filename, bytes) pairs.
    """

    logical_path: str
    pack_short_name: str | None = None
    samples: list = field(default_factory=list)


@dataclass
class Preset:
    """Converted instrument, ready to be written."""

    name: str
    folder: str
    patch: dict
    samples: list = field(default_factory=list)  # (filename, wav bytes)
    skipped: list = field(default_factory=list)  # (filename, reason)

    def files(self):
        """Yield (relative path, bytes) for every file of the preset."""
        for filename, data in self.samples:
            yield f"{self.folder}/{filename}", data
        yield f"{self.folder}/{PATCH_FILENAME}", serialize_descriptor(self.patch)


def instrument_name_and_type(logical_path):
    """Split a logical path into (instrument name, sound type).

    "Bass/TestBass" -> ("TestBass", "Bass"); missing parts become
    "Unnamed" and "Misc".
    """
    parts = logical_path.split("/")
    name = parts.pop() or "Unnamed"
    sound_type = parts.pop() if parts else "Misc"
    return name, sound_type


def unique_sample_filename(stem, used):
    """Output WAV name for a sample stem, numbered " (2)", " (3)", ... when taken.

    used holds lowercased names already in the preset and is updated.
    """
    candidate = f"{stem}.wav"
    number = 1
    while candidate.lower() in used:
        number += 1
        candidate = f"{stem} ({number}).wav"
    used.add(candidate.lower())
    return candidate


def _encode_item(item, target_rate, decoder):
    _, (filename, raw_audio) = item
    try:
        return item, resample_and_encode(raw_audio, target_rate, decoder), None
    except SampleError as e:
        return item, None, e


def _skip_sample(stats, skipped, filename, error):
    print(f"  - Skipping {filename}: {error}")
    stats.skipped_samples += 1
    stats.add_warning(filename, str(error))
    skipped.append((filename, str(error)))


def convert_instrument(
    instrument,
    registry,
    target_rate=DEFAULT_SAMPLE_RATE,
    prefix=DEFAULT_PREFIX,
    max_name_length=DEFAULT_MAX_NAME_LENGTH,
    middle_c_octave=DEFAULT_MIDDLE_C_OCTAVE,
    decoder=None,
    workers=DEFAULT_WORKERS,
    stats=None,
):
    """Convert one instrument to a preset.

    Samples that cannot be used (no pitch, undecodable audio, more than two
    channels) are skipped and reported; the preset is built from the rest.

    Args:
        instrument: Instrument to convert
        registry: PresetNameRegistry of the current run
        target_rate: Output sample rate in Hz
        prefix: Prefix for preset and sound type folder names
        max_name_length: Maximum preset name length
        middle_c_octave: Octave that maps C to 60 (see to_pitch_number)
        decoder: Decoder instance (default: SoundFileDecoder)
        workers: Number of threads for resampling (1 = no threads)
        stats: ConversionStats (default: global conversion_stats)

    Returns:
        Preset
    """
    if stats is None:
        stats = conversion_stats
    if decoder is None:
        decoder = SoundFileDecoder()

    instrument_name, sound_type = instrument_name_and_type(instrument.logical_path)
    preset_name = registry.name(
        preset_name_components(instrument_name, instrument.pack_short_name, prefix),
        max_name_length,
    )
    folder = f"{prefix}-{sanitize_for_path(sound_type)}/{preset_name}.preset"

    print(
        f"Processing instrument: {instrument_name} "
        f"(Type: {sound_type}, Pack: {instrument.pack_short_name or 'N/A'})"
    )

    # 1. Parse all filenames
    skipped = []
    parsed = []
    for filename, raw_audio in instrument.samples:
        try:
            _, pitch = parse_filename(filename, middle_c_octave)
        except SampleError as e:
            _skip_sample(stats, skipped, filename, e)
            continue
        parsed.append((pitch, (filename, raw_audio)))

    # 2. Resample every sample (concurrently)
    if workers and workers > 1 and len(parsed) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(
                executor.map(lambda item: _encode_item(item, target_rate, decoder), parsed)
            )
    else:
        results = [_encode_item(item, target_rate, decoder) for item in parsed]

    usable = []
    for (pitch, (filename, _)), sample, error in results:
        if error is not None:
            _skip_sample(stats, skipped, filename, error)
            continue
        usable.append((pitch, (filename, sample)))

    # 3. Sort by pitch (stable) and assign key ranges
    usable.sort(key=lambda item: item[0])
    zones = assign_ranges(usable)

    # 4. Build regions
    regions = []
    samples = []
    used_filenames = set()
    previous_pitch = None
    for zone in zones:
        filename, sample = zone.sample
        if zone.pitch == previous_pitch:
            message = f"duplicate pitch {zone.pitch}, key range {zone.lokey}-{zone.hikey}"
            print(f"  Warning: {filename}: {message}")
            stats.add_warning(filename, message)
        previous_pitch = zone.pitch

        stem = sanitize_name(filename) or "sample"
        sample_filename = unique_sample_filename(stem, used_filenames)
        if sample_filename != f"{stem}.wav":
            message = f"output name taken, written as '{sample_filename}'"
            print(f"  Warning: {filename}: {message}")
            stats.add_warning(filename, message)
        if sample.source_rate != target_rate:
            print(f"  - Resampled {filename} ({sample.source_rate} -> {target_rate} Hz)")
            stats.resampled_samples += 1
        else:
            print(f"  - Converted {filename}")
        stats.total_samples += 1

        regions.append(
            Region(
                lokey=zone.lokey,
                hikey=zone.hikey,
                pitch_center=zone.pitch,
                frame_count=sample.frame_count,
                sample_filename=sample_filename,
            )
        )
        samples.append((sample_filename, sample.wav_bytes))

    stats.instruments_processed += 1
    if not regions:
        stats.empty_instruments += 1
        print(f"  Warning: no usable samples in {instrument.logical_path or instrument_name}")
        stats.add_warning(instrument.logical_path or instrument_name, "no usable samples")

    return Preset(
        name=preset_name,
        folder=folder,
        patch=assemble(regions),
        samples=samples,
        skipped=skipped,
    )


def convert_run(
    instruments,
    registry=None,
    test_run=False,
    target_rate=DEFAULT_SAMPLE_RATE,
    prefix=DEFAULT_PREFIX,
    max_name_length=DEFAULT_MAX_NAME_LENGTH,
    middle_c_octave=DEFAULT_MIDDLE_C_OCTAVE,
    decoder=None,
    workers=DEFAULT_WORKERS,
    stats=None,
):
    """Convert instruments one after another, sharing one name registry.

    The registry is reset when the run starts. Presets are yielded as soon
    as each instrument is done, so writers can persist them incrementally.

    Args:
        instruments: Iterable of Instrument
        registry: PresetNameRegistry (default: a new one)
        test_run: Convert only the first instrument
        (remaining arguments: see convert_instrument)

    Yields:
        Preset
    """
    if registry is None:
        registry = PresetNameRegistry()
    registry.reset()

    if test_run:
        print("Test run enabled. Processing first instrument only.")
        instruments = itertools.islice(instruments, 1)

    for instrument in instruments:
        yield convert_instrument(
            instrument,
            registry,
            target_rate=target_rate,
            prefix=prefix,
            max_name_length=max_name_length,
            middle_c_octave=middle_c_octave,
            decoder=decoder,
            workers=workers,
            stats=stats,
        )


# =============================================================================
# Instrument Discovery
# =============================================================================


@dataclass
class FoundInstrument:
    """Instrument folder found on disk (files not loaded yet)."""

    logical_path: str
    directory: Path
    files: list
    pack_short_name: str | None = None


def get_pack_short_name(pack_name):
    """Abbreviate a pack folder name.

    "Vintage Keys Vol 2" -> "VKV2", "Strings" -> "STR".
    """
    words = pack_name.split()
    if len(words) > 1:
        return "".join(word[0].upper() for word in words)
    return pack_name.strip()[:3].upper()


def find_instruments(root, pack_short_name=None):
    """Find instrument folders (folders containing .wav files) below root.

    Args:
        root: Directory to scan
        pack_short_name: Pack tag for every instrument found

    Returns:
        list: FoundInstrument, sorted by logical path
    """
    root = Path(root)
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        wav_files = sorted(name for name in filenames if name.lower().endswith(".wav"))
        if not wav_files:
            continue
        directory = Path(dirpath)
        relative = directory.relative_to(root).as_posix()
        found.append(
            FoundInstrument(
                logical_path="" if relative == "." else relative,
                directory=directory,
                files=[directory / name for name in wav_files],
                pack_short_name=pack_short_name,
            )
        )
    found.sort(key=lambda item: item.logical_path)
    return found


def find_library_instruments(root):
    """Find instruments in a sample library.

    Each folder directly below root is a pack; its instruments live in
    <pack>/Samples/Instruments and are tagged with the pack short name.

    Returns:
        list: FoundInstrument
    """
    root = Path(root)
    found = []
    for pack_dir in sorted(root.iterdir()):
        if not pack_dir.is_dir():
            continue
        print(f"Searching for instruments in pack: {pack_dir.name}")
        instruments_dir = pack_dir / "Samples" / "Instruments"
        if not instruments_dir.is_dir():
            continue
        found.extend(find_instruments(instruments_dir, get_pack_short_name(pack_dir.name)))
    return found


def load_instrument(found):
    """Read the sample files of a FoundInstrument into an Instrument."""
    return Instrument(
        logical_path=found.logical_path,
        pack_short_name=found.pack_short_name,
        samples=[(path.name, path.read_bytes()) for path in found.files],
    )


# =============================================================================
# Preset Writers
# =============================================================================


def write_presets(presets, output_dir):
    """Write presets into a folder.

    Returns:
        int: Number of presets written
    """
    output_dir = Path(output_dir)
    count = 0
    for preset in presets:
        for relative_path, data in preset.files():
            path = output_dir / relative_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        print(f"  Wrote {preset.folder}/")
        count += 1
    return count


def write_presets_zip(presets, zip_path):
    """Write presets into one ZIP archive (with directory entries).

    Returns:
        int: Number of presets written
    """
    zip_path = Path(zip_path)
    zip_path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    directories = set()
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for preset in presets:
            sound_type_folder = preset.folder.split("/")[0]
            for directory in (sound_type_folder, preset.folder):
                if directory not in directories:
                    zf.writestr(f"{directory}/", b"")
                    directories.add(directory)
            for relative_path, data in preset.files():
                zf.writestr(relative_path, data)
            print(f"  Added {preset.folder}/ to {zip_path.name}")
            count += 1
    return count


def default_zip_name(prefix=DEFAULT_PREFIX):
    return f"{prefix}-presets-all.zip"


# =============================================================================
# Main Entry Point
# =============================================================================


def validate_settings(target_rate, max_name_length, prefix, workers):
    """Check conversion settings.

    Returns:
        str: Sanitized prefix

    Raises:
        ValidationError: If a setting is out of range
    """
    if target_rate <= 0:
        raise ValidationError(f"Sample rate must be positive, got {target_rate}")
    if max_name_length < MIN_NAME_LENGTH:
        raise ValidationError(
            f"Max name length must be at least {MIN_NAME_LENGTH}, got {max_name_length}"
        )
    if workers < 1:
        raise ValidationError(f"Workers must be at least 1, got {workers}")
    clean_prefix = re.sub(r"\s+", "-", sanitize_for_path(prefix))
    if not clean_prefix:
        raise ValidationError(f"Invalid name prefix: '{prefix}'")
    return clean_prefix


def build_parser():
    parser = argparse.ArgumentParser(
        prog="xyconv",
        description="Convert folders of pitched WAV samples to OP-XY multisampler presets.",
        epilog=(
            "Every folder with .wav files becomes one preset. Sample filenames "
            "must contain a note name (e.g. 'Piano C4.wav', 'bass_a#2.wav')."
        ),
    )
    parser.add_argument(
        "input_dir",
        metavar="INPUT_DIR",
        help="Folder with instrument folders (or a sample library with --library)",
    )
    parser.add_argument(
        "output",
        metavar="OUTPUT",
        help="Output folder (or .zip file with --zip)",
    )
    parser.add_argument(
        "--library",
        "-L",
        action="store_true",
        help="Treat INPUT_DIR as a library of packs (<pack>/Samples/Instruments/...)",
    )
    parser.add_argument(
        "--zip",
        "-z",
        action="store_true",
        help=f"Write a single ZIP archive (default name: {default_zip_name()})",
    )
    parser.add_argument(
        "--sample-rate",
        "-R",
        type=int,
        default=DEFAULT_SAMPLE_RATE,
        metavar="RATE",
        help=f"Output sample rate in Hz (default: {DEFAULT_SAMPLE_RATE})",
    )
    parser.add_argument(
        "--prefix",
        default=DEFAULT_PREFIX,
        help=f"Prefix for preset and folder names (default: {DEFAULT_PREFIX})",
    )
    parser.add_argument(
        "--max-name-length",
        type=int,
        default=DEFAULT_MAX_NAME_LENGTH,
        metavar="N",
        help=f"Maximum preset name length (default: {DEFAULT_MAX_NAME_LENGTH})",
    )
    parser.add_argument(
        "--middle-c",
        type=int,
        choices=[3, 4],
        default=DEFAULT_MIDDLE_C_OCTAVE,
        help="Octave of middle C (MIDI 60) in sample names: 3 = C3, 4 = C4 (default: 3)",
    )
    parser.add_argument(
        "--decoder",
        choices=sorted(DECODERS),
        default=SoundFileDecoder.name,
        help="Audio decoder: soundfile (WAV/AIFF/FLAC via libsndfile) or ffmpeg (any format, needs ffmpeg)",
    )
    parser.add_argument(
        "--workers",
        "-j",
        type=int,
        default=DEFAULT_WORKERS,
        metavar="N",
        help=f"Resampling threads per instrument (default: {DEFAULT_WORKERS})",
    )
    parser.add_argument(
        "--test-run",
        action="store_true",
        help="Convert only the first instrument found",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def run(args):
    """Run a conversion from parsed arguments.

    Returns:
        int: Number of presets written

    Raises:
        ValidationError: On invalid input or settings
    """
    prefix = validate_settings(args.sample_rate, args.max_name_length, args.prefix, args.workers)

    input_dir = Path(args.input_dir)
    if not input_dir.is_dir():
        raise ValidationError(f"INPUT_DIR is not a directory: {input_dir}")

    output = Path(args.output)
    if args.zip:
        zip_path = output if output.suffix.lower() == ".zip" else output / default_zip_name(prefix)
        if zip_path.is_dir():
            raise ValidationError(f"ZIP output is a directory: {zip_path}")
    elif output.is_file():
        raise ValidationError(f"OUTPUT is a file, not a directory: {output}")

    decoder = get_decoder(args.decoder)
    if isinstance(decoder, FfmpegDecoder) and not check_ffmpeg():
        raise ValidationError(
            "ffmpeg is not installed or not found in PATH.\n\n"
            "Please install ffmpeg:\n"
            "  macOS:   brew install ffmpeg\n"
            "  Ubuntu:  sudo apt install ffmpeg\n"
            "  Windows: Download from https://ffmpeg.org/download.html"
        )

    if args.library:
        print(f"Scanning library: {input_dir.name}...")
        found = find_library_instruments(input_dir)
    else:
        print(f"Scanning directory: {input_dir.name}...")
        found = find_instruments(input_dir)

    print(f"Scan complete. Found {len(found)} instrument(s).\n")
    if not found:
        raise ValidationError(f"No instrument folders with .wav files found in {input_dir}")

    conversion_stats.reset()
    presets = convert_run(
        (load_instrument(item) for item in found),
        test_run=args.test_run,
        target_rate=args.sample_rate,
        prefix=prefix,
        max_name_length=args.max_name_length,
        middle_c_octave=args.middle_c,
        decoder=decoder,
        workers=args.workers,
        stats=conversion_stats,
    )

    if args.zip:
        written = write_presets_zip(presets, zip_path)
        print(f"\nSuccessfully created {zip_path}")
    else:
        written = write_presets(presets, output)
        print(f"\nOutput: {output}")

    settings = {
        "sample_rate": args.sample_rate,
        "prefix": prefix,
        "max_name_length": args.max_name_length,
        "middle_c_octave": args.middle_c,
        "decoder": args.decoder,
        "library": args.library,
        "test_run": args.test_run,
        "zip": args.zip,
    }
    conversion_stats.print_summary(settings)
    return written


def main(argv=None):
    args = build_parser().parse_args(argv)
    try:
        run(args)
    except ConversionError as e:
        print(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
