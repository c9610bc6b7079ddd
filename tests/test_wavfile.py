"""
Tests for WAV file output and input.
"""

import struct

import numpy as np

from magstripe import Swipe, export_swipe, read_wav, write_wav
from magstripe.wavfile import wav_bytes


class TestWavHeader:
    """Test the 44-byte RIFF header of written files."""

    def test_size(self):
        image = wav_bytes(np.zeros(10, dtype=np.int16), 44100)
        assert len(image) == 44 + 20

    def test_fields(self):
        header = wav_bytes(np.zeros(100, dtype=np.int16), 44100)[:44]
        (riff, riff_size, wave, fmt, fmt_size, audio_format, channels,
         sample_rate, byte_rate, block_align, bits, data, data_size) = struct.unpack(
            "<4sI4s4sIHHIIHH4sI", header
        )
        assert riff == b"RIFF"
        assert riff_size == 236
        assert wave == b"WAVE"
        assert fmt == b"fmt "
        assert fmt_size == 16
        assert audio_format == 1
        assert channels == 1
        assert sample_rate == 44100
        assert byte_rate == 88200
        assert block_align == 2
        assert bits == 16
        assert data == b"data"
        assert data_size == 200

    def test_file_matches_image(self, tmp_path):
        samples = np.array([0, 1000, -1000], dtype=np.int16)
        path = tmp_path / "out.wav"
        write_wav(path, samples, 8000)
        assert path.read_bytes() == wav_bytes(samples, 8000)


class TestWavBytes:
    """Test WAV serialization."""

    def test_int16_passthrough(self):
        image = wav_bytes(np.array([1, -2, 32767], dtype=np.int16), 8000)
        assert len(image) == 44 + 6
        assert struct.unpack("<3h", image[44:]) == (1, -2, 32767)

    def test_float_scaled(self):
        image = wav_bytes(np.array([1.0, -1.0, 0.0]), 8000)
        assert struct.unpack("<3h", image[44:]) == (32767, -32767, 0)


class TestReadWrite:
    """Test file round trips."""

    def test_round_trip(self, tmp_path):
        samples = np.array([0, 1000, -1000, 32767, -32767], dtype=np.int16)
        path = tmp_path / "out.wav"
        write_wav(path, samples, 22050)

        read, sample_rate = read_wav(path)
        assert sample_rate == 22050
        assert read.dtype == np.int16
        assert read.tolist() == samples.tolist()

    def test_str_path(self, tmp_path):
        path = str(tmp_path / "out.wav")
        write_wav(path, np.zeros(10), 44100)
        read, _ = read_wav(path)
        assert len(read) == 10

    def test_export_swipe(self, tmp_path):
        samples = np.arange(100, dtype=np.int16)
        path = tmp_path / "swipe.wav"
        export_swipe(path, samples, Swipe(10, 30), 44100)

        read, _ = read_wav(path)
        assert read.tolist() == list(range(10, 30))
