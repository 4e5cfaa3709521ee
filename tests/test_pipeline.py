import io
import json
import zipfile

import numpy as np
import soundfile as sf

from conftest import make_wav
from xyconv import (
    ConversionStats,
    Instrument,
    PresetNameRegistry,
    convert_instrument,
    convert_run,
    find_instruments,
    find_library_instruments,
    get_pack_short_name,
    load_instrument,
    write_presets,
    write_presets_zip,
)


def convert_tree(root, **kwargs):
    stats = kwargs.pop("stats", ConversionStats())
    instruments = [load_instrument(found) for found in find_instruments(root)]
    return list(convert_run(instruments, stats=stats, **kwargs)), stats


def test_test_bass_end_to_end(instrument_tree, tmp_path):
    presets, stats = convert_tree(instrument_tree, workers=2)

    assert len(presets) == 1
    preset = presets[0]
    assert preset.name == "zzm-TestBass"
    assert preset.folder == "zzm-Bass/zzm-TestBass.preset"

    regions = preset.patch["regions"]
    assert [r["pitch.keycenter"] for r in regions] == [48, 59]
    assert [(r["lokey"], r["hikey"]) for r in regions] == [(0, 48), (49, 127)]
    assert [r["sample"] for r in regions] == ["TestBass c2.wav", "TestBass b2.wav"]
    assert [r["framecount"] for r in regions] == [2205, 2205]

    assert stats.total_samples == 2
    assert stats.resampled_samples == 2
    assert stats.skipped_samples == 0

    out = tmp_path / "out"
    assert write_presets(presets, out) == 1
    preset_dir = out / "zzm-Bass" / "zzm-TestBass.preset"
    assert sorted(p.name for p in preset_dir.iterdir()) == [
        "TestBass b2.wav",
        "TestBass c2.wav",
        "patch.json",
    ]
    assert json.loads((preset_dir / "patch.json").read_text()) == preset.patch


def test_scientific_octaves(instrument_tree):
    presets, _ = convert_tree(instrument_tree, middle_c_octave=4, workers=1)

    regions = presets[0].patch["regions"]
    assert [r["pitch.keycenter"] for r in regions] == [36, 47]


def test_sample_without_pitch_is_skipped():
    instrument = Instrument(
        logical_path="Keys/Piano",
        samples=[
            ("notes.wav", make_wav()),
            ("Piano C3.wav", make_wav()),
        ],
    )
    stats = ConversionStats()

    preset = convert_instrument(instrument, PresetNameRegistry(), stats=stats)

    assert preset.skipped[0][0] == "notes.wav"
    assert stats.skipped_samples == 1
    assert stats.warnings[0][0] == "notes.wav"
    regions = preset.patch["regions"]
    assert len(regions) == 1
    assert (regions[0]["lokey"], regions[0]["hikey"]) == (0, 127)


def test_undecodable_sample_leaves_no_gap():
    instrument = Instrument(
        logical_path="Keys/Piano",
        samples=[
            ("Piano C2.wav", make_wav()),
            ("Piano C3.wav", b"broken"),
            ("Piano C4.wav", make_wav()),
        ],
    )
    stats = ConversionStats()

    preset = convert_instrument(instrument, PresetNameRegistry(), workers=3, stats=stats)

    regions = preset.patch["regions"]
    assert [(r["lokey"], r["hikey"]) for r in regions] == [(0, 48), (49, 127)]
    assert preset.skipped[0][0] == "Piano C3.wav"
    assert stats.skipped_samples == 1


def test_duplicate_pitch_is_reported():
    instrument = Instrument(
        logical_path="Keys/Piano",
        samples=[("Piano C3 soft.wav", make_wav()), ("Piano C3 hard.wav", make_wav())],
    )
    stats = ConversionStats()

    preset = convert_instrument(instrument, PresetNameRegistry(), stats=stats)

    regions = preset.patch["regions"]
    assert [(r["lokey"], r["hikey"]) for r in regions] == [(0, 60), (61, 127)]
    assert any("duplicate pitch 60" in message for _, message in stats.warnings)


def test_empty_instrument_yields_preset_without_regions():
    instrument = Instrument(logical_path="Pads/Nothing", samples=[("readme.wav", make_wav())])
    stats = ConversionStats()

    preset = convert_instrument(instrument, PresetNameRegistry(), stats=stats)

    assert preset.patch["regions"] == []
    assert preset.samples == []
    assert stats.empty_instruments == 1
    assert ("Pads/Nothing", "no usable samples") in stats.warnings


def test_long_names_with_pack_are_truncated_and_unique():
    registry = PresetNameRegistry()
    samples = [("Felt C3.wav", make_wav())]
    first = Instrument("Keys/GrandPianoFelt", "VKV2", samples)
    second = Instrument("Other/GrandPianoFelt", "VKV2", samples)

    presets = list(convert_run([first, second], registry=registry, stats=ConversionStats()))

    assert presets[0].folder == "zzm-Keys/zzm-VKV2-GrandPianoF.preset"
    assert presets[1].folder == "zzm-Other/zzm-VKV2-GrandPian-1.preset"


def test_root_level_instrument_gets_default_names():
    instrument = Instrument(logical_path="", samples=[("Lead A3.wav", make_wav())])

    preset = convert_instrument(instrument, PresetNameRegistry(), stats=ConversionStats())

    assert preset.folder == "zzm-Misc/zzm-Unnamed.preset"


def test_test_run_converts_first_instrument_only(instrument_tree):
    other = instrument_tree / "Keys" / "Organ"
    other.mkdir(parents=True)
    (other / "Organ C3.wav").write_bytes(make_wav())

    presets, stats = convert_tree(instrument_tree, test_run=True)

    assert len(presets) == 1
    assert stats.instruments_processed == 1


def test_run_resets_registry(instrument_tree):
    registry = PresetNameRegistry()
    first, _ = convert_tree(instrument_tree, registry=registry)
    second, _ = convert_tree(instrument_tree, registry=registry)

    assert first[0].name == second[0].name == "zzm-TestBass"


def test_write_presets_zip(instrument_tree, tmp_path):
    presets, _ = convert_tree(instrument_tree)
    zip_path = tmp_path / "zzm-presets-all.zip"

    assert write_presets_zip(presets, zip_path) == 1

    with zipfile.ZipFile(zip_path) as zf:
        names = zf.namelist()
        patch = json.loads(zf.read("zzm-Bass/zzm-TestBass.preset/patch.json"))
    assert names[:2] == ["zzm-Bass/", "zzm-Bass/zzm-TestBass.preset/"]
    assert "zzm-Bass/zzm-TestBass.preset/TestBass c2.wav" in names
    assert patch["regions"][0]["pitch.keycenter"] == 48


def test_find_instruments(instrument_tree):
    (instrument_tree / "Bass" / "TestBass" / "notes.txt").write_text("x")
    (instrument_tree / "Top C3.WAV").write_bytes(make_wav())

    found = find_instruments(instrument_tree)

    assert [item.logical_path for item in found] == ["", "Bass/TestBass"]
    assert [p.name for p in found[1].files] == ["TestBass b2.wav", "TestBass c2.wav"]


def test_find_library_instruments(tmp_path):
    for pack in ("Vintage Keys Vol 2", "Strings"):
        folder = tmp_path / pack / "Samples" / "Instruments" / "Keys" / "Lead"
        folder.mkdir(parents=True)
        (folder / "Lead C3.wav").write_bytes(make_wav())
    (tmp_path / "Empty Pack").mkdir()

    found = find_library_instruments(tmp_path)

    assert [(item.pack_short_name, item.logical_path) for item in found] == [
        ("STR", "Keys/Lead"),
        ("VKV2", "Keys/Lead"),
    ]


def test_get_pack_short_name():
    assert get_pack_short_name("Vintage Keys Vol 2") == "VKV2"
    assert get_pack_short_name("Strings") == "STR"
    assert get_pack_short_name("ab") == "AB"


def test_float_and_integer_samples_share_an_instrument():
    float_buf = io.BytesIO()
    sf.write(float_buf, np.full(4410, 0.25, dtype=np.float32), 44100, format="WAV", subtype="FLOAT")
    instrument = Instrument(
        logical_path="Keys/Piano",
        samples=[("Piano C3.wav", float_buf.getvalue()), ("Piano C4.wav", make_wav())],
    )
    stats = ConversionStats()

    preset = convert_instrument(instrument, PresetNameRegistry(), stats=stats)

    assert [r["sample"] for r in preset.patch["regions"]] == ["Piano C3.wav", "Piano C4.wav"]
    assert stats.skipped_samples == 0


def test_colliding_sample_names_are_numbered(tmp_path):
    instrument = Instrument(
        logical_path="Keys/Piano",
        samples=[("Piano C4.wav", make_wav()), ("Piano C4!.wav", make_wav())],
    )
    stats = ConversionStats()

    preset = convert_instrument(instrument, PresetNameRegistry(), stats=stats)

    names = [name for name, _ in preset.samples]
    assert names == ["Piano C4.wav", "Piano C4 (2).wav"]
    assert [r["sample"] for r in preset.patch["regions"]] == names
    assert any("written as 'Piano C4 (2).wav'" in message for _, message in stats.warnings)

    zip_path = tmp_path / "out.zip"
    write_presets_zip([preset], zip_path)
    with zipfile.ZipFile(zip_path) as zf:
        entries = zf.namelist()
    assert len(entries) == len(set(entries))
