import pytest

from xyconv import PresetNameRegistry, ValidationError, preset_name_components


def test_name_joins_components():
    registry = PresetNameRegistry()

    assert registry.name(["zzm", "TestBass"]) == "zzm-TestBass"
    assert "zzm-TestBass" in registry
    assert len(registry) == 1


def test_name_drops_empty_components():
    assert PresetNameRegistry().name(["zzm", "", "Piano"]) == "zzm-Piano"


def test_name_truncates_to_max_length():
    name = PresetNameRegistry().name(["zzm", "VKV2", "GrandPianoFelt"], max_length=20)

    assert name == "zzm-VKV2-GrandPianoF"
    assert len(name) == 20


def test_name_collision_gets_suffix_within_max_length():
    registry = PresetNameRegistry()
    components = ["zzm", "VKV2", "GrandPianoFelt"]

    first = registry.name(components)
    second = registry.name(components)
    third = registry.name(components)

    assert first == "zzm-VKV2-GrandPianoF"
    assert second == "zzm-VKV2-GrandPian-1"
    assert third == "zzm-VKV2-GrandPian-2"
    assert all(len(name) <= 20 for name in (first, second, third))


def test_name_collision_with_short_name():
    registry = PresetNameRegistry()

    assert registry.name(["zzm", "Bass"]) == "zzm-Bass"
    assert registry.name(["zzm", "Bass"]) == "zzm-Bass-1"


def test_name_suffix_skips_taken_names():
    registry = PresetNameRegistry()
    registry.name(["zzm", "Bass-1"])
    registry.name(["zzm", "Bass"])

    assert registry.name(["zzm", "Bass"]) == "zzm-Bass-2"


def test_reset_forgets_names():
    registry = PresetNameRegistry()
    registry.name(["zzm", "Bass"])
    registry.reset()

    assert len(registry) == 0
    assert registry.name(["zzm", "Bass"]) == "zzm-Bass"


def test_preset_name_components():
    assert preset_name_components("Piano Samples", "VKV2") == ["zzm", "VKV2", "Piano"]
    assert preset_name_components("Soft Pad", prefix="xy") == ["xy", "Soft-Pad"]
    assert preset_name_components("Organ #2") == ["zzm", "Organ-2"]


def test_name_fails_when_suffix_cannot_fit():
    registry = PresetNameRegistry()

    assert registry.name(["zzm"], max_length=2) == "zz"
    with pytest.raises(ValidationError):
        registry.name(["zzm"], max_length=2)


def test_names_never_exceed_small_max_length():
    registry = PresetNameRegistry()

    names = [registry.name(["zzm", "Bass"], max_length=4) for _ in range(12)]

    assert len(set(names)) == 12
    assert all(len(name) <= 4 for name in names)
    assert names[:3] == ["zzm-", "zz-1", "zz-2"]
    assert names[-1] == "z-11"
