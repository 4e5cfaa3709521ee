import io
import struct

import numpy as np
import pytest
import soundfile as sf

from conftest import make_wav
from xyconv import (
    WAV_HEADER_LENGTH,
    Decoder,
    DecodeError,
    UnsupportedChannelLayout,
    ValidationError,
    SoundFileDecoder,
    encode_wav,
    get_decoder,
    resample_and_encode,
    resample_channels,
)


def test_encode_wav_writes_canonical_header():
    data = encode_wav(np.zeros((2, 10)), 22050)

    fields = struct.unpack("<4sI4s4sIHHIIHH4sI", data[:WAV_HEADER_LENGTH])
    assert fields == (
        b"RIFF", 36 + 40, b"WAVE", b"fmt ", 16, 1, 2,
        22050, 22050 * 4, 4, 16, b"data", 40,
    )
    assert len(data) == WAV_HEADER_LENGTH + 40


def test_encode_wav_scales_and_clips_samples():
    data = encode_wav(np.array([[1.0, -1.0, 0.0, 2.0, -3.0, np.nan]]), 22050)

    pcm = np.frombuffer(data[WAV_HEADER_LENGTH:], dtype="<i2")
    assert pcm.tolist() == [32767, -32767, 0, 32767, -32767, 0]


def test_encode_wav_interleaves_stereo():
    samples = np.array([[0.5, 0.25], [-0.5, -0.25]])

    pcm = np.frombuffer(encode_wav(samples, 22050)[WAV_HEADER_LENGTH:], dtype="<i2")
    assert pcm.tolist() == [16384, -16384, 8192, -8192]


def test_encode_wav_rejects_more_than_two_channels():
    with pytest.raises(UnsupportedChannelLayout):
        encode_wav(np.zeros((3, 4)), 22050)


@pytest.mark.parametrize(
    "frames, rate, expected",
    [
        (4410, 44100, 2205),
        (4411, 44100, 2206),
        (4800, 48000, 2205),
        (4801, 48000, 2206),
        (1000, 22050, 1000),
    ],
)
def test_resample_and_encode_frame_count(frames, rate, expected):
    encoded = resample_and_encode(make_wav(frames=frames, rate=rate), 22050)

    assert encoded.frame_count == expected
    assert encoded.source_rate == rate
    assert len(encoded.wav_bytes) == WAV_HEADER_LENGTH + 2 * expected


def test_resample_and_encode_keeps_stereo():
    encoded = resample_and_encode(make_wav(frames=4410, rate=44100, channels=2), 22050)

    assert encoded.channels == 2
    assert encoded.frame_count == 2205
    assert len(encoded.wav_bytes) == WAV_HEADER_LENGTH + 2 * 2 * 2205
    assert struct.unpack("<HI", encoded.wav_bytes[22:28]) == (2, 22050)


def test_resample_and_encode_rejects_three_channels():
    with pytest.raises(UnsupportedChannelLayout):
        resample_and_encode(make_wav(frames=100, channels=3))


def test_resample_and_encode_rejects_junk():
    with pytest.raises(DecodeError):
        resample_and_encode(b"this is not a wav file at all")


def test_resample_preserves_sine_level(sine):
    resampled = resample_channels(sine(44100, 44100), 44100, 22050)

    assert resampled.shape == (1, 22050)
    middle = resampled[0, 1000:-1000]
    assert np.max(np.abs(middle)) == pytest.approx(0.5, abs=0.02)


@pytest.mark.parametrize("sampwidth", [1, 2, 3, 4])
def test_wave_decoder_sample_widths(sampwidth):
    audio = SoundFileDecoder().decode(make_wav(frames=50, rate=32000, sampwidth=sampwidth, value=0.5))

    assert audio.channels == 1
    assert audio.frames == 50
    assert audio.sample_rate == 32000
    assert np.allclose(audio.samples, 0.5, atol=0.01)


def test_wave_decoder_negative_24_bit():
    audio = SoundFileDecoder().decode(make_wav(frames=10, sampwidth=3, value=-0.5))

    assert np.allclose(audio.samples, -0.5, atol=1e-6)
    assert audio.duration == pytest.approx(10 / 44100)


def test_get_decoder_unknown_name():
    assert isinstance(get_decoder("soundfile"), SoundFileDecoder)
    with pytest.raises(ValidationError):
        get_decoder("mp3")


def write_soundfile(data, rate, format, subtype):
    buf = io.BytesIO()
    sf.write(buf, data, rate, format=format, subtype=subtype)
    return buf.getvalue()


def test_float_wav_is_decoded():
    raw = write_soundfile(np.full((4410, 1), 0.5, dtype=np.float32), 44100, "WAV", "FLOAT")
    assert struct.unpack("<H", raw[20:22]) == (3,)

    encoded = resample_and_encode(raw, 22050)

    assert encoded.frame_count == 2205
    pcm = np.frombuffer(encoded.wav_bytes[WAV_HEADER_LENGTH:], dtype="<i2")
    assert pcm[1000] / 32767 == pytest.approx(0.5, abs=0.01)


def test_extensible_24_bit_wav_is_decoded():
    raw = write_soundfile(np.full((480, 2), -0.25), 48000, "WAVEX", "PCM_24")
    assert struct.unpack("<H", raw[20:22]) == (0xFFFE,)

    audio = SoundFileDecoder().decode(raw)

    assert (audio.channels, audio.frames, audio.sample_rate) == (2, 480, 48000)
    assert np.allclose(audio.samples, -0.25, atol=1e-6)


def test_decoder_base_is_abstract():
    with pytest.raises(TypeError):
        Decoder()
