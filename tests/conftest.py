import io
import wave

import numpy as np
import pytest


def make_wav(frames=1000, rate=44100, channels=1, sampwidth=2, value=0.25):
    """Build WAV bytes holding a constant signal."""
    buf = io.BytesIO()
    with wave.open(buf, "wb") as w:
        w.setnchannels(channels)
        w.setsampwidth(sampwidth)
        w.setframerate(rate)
        if sampwidth == 1:
            sample = int(128 + value * 127).to_bytes(1, "little", signed=False)
        else:
            scale = 2 ** (8 * sampwidth - 1) - 1
            sample = int(value * scale).to_bytes(sampwidth, "little", signed=True)
        w.writeframes(sample * (frames * channels))
    return buf.getvalue()


@pytest.fixture
def wav_bytes():
    return make_wav


@pytest.fixture
def instrument_tree(tmp_path):
    """Input folder with Bass/TestBass holding two pitched samples."""
    root = tmp_path / "input"
    folder = root / "Bass" / "TestBass"
    folder.mkdir(parents=True)
    (folder / "TestBass b2.wav").write_bytes(make_wav(frames=4410, rate=44100))
    (folder / "TestBass c2.wav").write_bytes(make_wav(frames=4800, rate=48000))
    return root


@pytest.fixture
def sine():
    def _sine(frames, rate, freq=440.0, channels=1):
        t = np.arange(frames) / rate
        mono = 0.5 * np.sin(2 * np.pi * freq * t)
        return np.tile(mono, (channels, 1))

    return _sine
