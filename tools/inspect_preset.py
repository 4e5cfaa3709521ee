#!/usr/bin/env python3
"""Preset checker for generated OP-XY multisampler presets.

Reads a .preset folder (patch.json + WAV files) and verifies that:
- regions cover keys 0-127 without gaps or overlaps
- every referenced sample exists and has a canonical 16-bit PCM header
- framecount / sample.end / loop.end match the WAV frame count

Usage:
    inspect_preset.py <preset_dir>             # Check single preset
    inspect_preset.py <parent_dir> --all       # Check all *.preset folders below

Copyright (c) 2025, xyconv contributors
"""

import argparse
import json
import struct
import sys
from pathlib import Path


# =============================================================================
# Constants
# =============================================================================

WAV_HEADER_LENGTH = 44
NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]


# =============================================================================
# Utility Functions
# =============================================================================


def midi_to_note_name(midi_note):
    """Convert MIDI note number to note name (e.g., 60 -> 'C3', OP-XY style)."""
    octave = (midi_note // 12) - 2
    note = NOTE_NAMES[midi_note % 12]
    return f"{note}{octave}"


# =============================================================================
# WAV Header Reading
# =============================================================================


def read_wav_header(filepath):
    """Read the canonical 44-byte WAV header.

    Args:
        filepath: Path to WAV file

    Returns:
        dict: Header fields plus "frames", or None if the header is not
        canonical 16-bit PCM
    """
    data = Path(filepath).read_bytes()
    if len(data) < WAV_HEADER_LENGTH:
        return None

    (
        riff,
        riff_size,
        wave_id,
        fmt_id,
        fmt_size,
        audio_format,
        channels,
        sample_rate,
        byte_rate,
        block_align,
        bits,
        data_id,
        data_size,
    ) = struct.unpack("<4sI4s4sIHHIIHH4sI", data[:WAV_HEADER_LENGTH])

    if (riff, wave_id, fmt_id, data_id) != (b"RIFF", b"WAVE", b"fmt ", b"data"):
        return None
    if fmt_size != 16 or audio_format != 1 or bits != 16 or channels not in (1, 2):
        return None

    return {
        "channels": channels,
        "sample_rate": sample_rate,
        "byte_rate": byte_rate,
        "block_align": block_align,
        "riff_size": riff_size,
        "data_size": data_size,
        "file_size": len(data),
        "frames": data_size // block_align if block_align else 0,
    }


# =============================================================================
# Preset Checks
# =============================================================================


def check_key_coverage(regions):
    """Check that regions cover 0-127 contiguously.

    Returns:
        list: Problem descriptions
    """
    problems = []
    if not regions:
        return problems

    ordered = sorted(regions, key=lambda r: r["lokey"])
    if ordered[0]["lokey"] != 0:
        problems.append(f"first region starts at {ordered[0]['lokey']}, expected 0")
    if ordered[-1]["hikey"] != 127:
        problems.append(f"last region ends at {ordered[-1]['hikey']}, expected 127")

    for prev, region in zip(ordered, ordered[1:]):
        if region["lokey"] != prev["hikey"] + 1:
            problems.append(
                f"{region['sample']}: lokey {region['lokey']} does not follow "
                f"hikey {prev['hikey']} of {prev['sample']}"
            )
    for region in ordered:
        if region["lokey"] > region["hikey"]:
            problems.append(
                f"{region['sample']}: empty key range {region['lokey']}-{region['hikey']}"
            )
    return problems


def check_region_sample(preset_dir, region):
    """Check one region against its WAV file.

    Returns:
        tuple: (header dict or None, list of problems)
    """
    wav_path = Path(preset_dir) / region["sample"]
    if not wav_path.is_file():
        return None, [f"{region['sample']}: file not found"]

    header = read_wav_header(wav_path)
    if header is None:
        return None, [f"{region['sample']}: not a canonical 16-bit PCM WAV"]

    problems = []
    expected_size = WAV_HEADER_LENGTH + header["data_size"]
    if header["file_size"] != expected_size:
        problems.append(
            f"{region['sample']}: file size {header['file_size']}, header says {expected_size}"
        )
    if header["riff_size"] != header["data_size"] + 36:
        problems.append(f"{region['sample']}: bad RIFF size {header['riff_size']}")
    if not isinstance(region.get("pitch.keycenter"), int):
        problems.append(f"{region['sample']}: missing pitch.keycenter")
    for key in ("framecount", "sample.end", "loop.end"):
        if region.get(key) != header["frames"]:
            problems.append(
                f"{region['sample']}: {key} = {region.get(key)}, WAV has {header['frames']} frames"
            )
    return header, problems


def inspect_preset(preset_dir):
    """Inspect one preset folder.

    Returns:
        dict: {"name", "regions", "samples", "problems"}
    """
    preset_dir = Path(preset_dir)
    patch_path = preset_dir / "patch.json"
    result = {"name": preset_dir.name, "regions": 0, "samples": [], "problems": []}

    if not patch_path.is_file():
        result["problems"].append("patch.json not found")
        return result

    try:
        patch = json.loads(patch_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        result["problems"].append(f"patch.json is not valid JSON: {e}")
        return result

    if patch.get("type") != "multisampler":
        result["problems"].append(f"unexpected patch type: {patch.get('type')}")

    regions = patch.get("regions", [])
    result["regions"] = len(regions)
    result["problems"].extend(check_key_coverage(regions))

    for region in regions:
        header, problems = check_region_sample(preset_dir, region)
        result["problems"].extend(problems)
        if header:
            result["samples"].append(
                {
                    "sample": region["sample"],
                    "keycenter": region.get("pitch.keycenter"),
                    "range": (region["lokey"], region["hikey"]),
                    "channels": header["channels"],
                    "sample_rate": header["sample_rate"],
                    "frames": header["frames"],
                }
            )
    return result


def print_report(result):
    """Print inspection result for one preset."""
    print(f"\n{result['name']} ({result['regions']} regions)")
    for info in result["samples"]:
        lokey, hikey = info["range"]
        keycenter = info["keycenter"]
        root = midi_to_note_name(keycenter) if isinstance(keycenter, int) else "?"
        duration = info["frames"] / info["sample_rate"] if info["sample_rate"] else 0
        print(
            f"  {midi_to_note_name(lokey):>4}-{midi_to_note_name(hikey):<4} "
            f"root {root:<4} {info['sample']} "
            f"({info['channels']}ch, {info['sample_rate']} Hz, {duration:.2f}s)"
        )
    if result["problems"]:
        for problem in result["problems"]:
            print(f"  [!] {problem}")
    else:
        print("  OK")


# =============================================================================
# Main Entry Point
# =============================================================================


def main(argv=None):
    parser = argparse.ArgumentParser(description="Check generated OP-XY presets.")
    parser.add_argument("path", help=".preset folder (or parent folder with --all)")
    parser.add_argument(
        "--all",
        action="store_true",
        help="Check every *.preset folder below PATH",
    )
    args = parser.parse_args(argv)

    path = Path(args.path)
    if args.all:
        preset_dirs = sorted(p for p in path.rglob("*.preset") if p.is_dir())
    else:
        preset_dirs = [path]

    if not preset_dirs:
        print(f"No presets found in {path}")
        return 1

    failed = 0
    for preset_dir in preset_dirs:
        result = inspect_preset(preset_dir)
        print_report(result)
        if result["problems"]:
            failed += 1

    print(f"\nChecked {len(preset_dirs)} preset(s), {failed} with problems.")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
