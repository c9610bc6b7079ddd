"""
Tests for F2F waveform synthesis.
"""

import numpy as np
import pytest

from magstripe import F2FEncoder, InvalidArgument, differentiate, find_peaks, synthesize, to_pcm16


def transitions(samples: np.ndarray) -> int:
    return int(np.count_nonzero(np.diff(samples)))


class TestF2FEncoder:
    """Test encoder setup and bit cells."""

    def test_encoder_init(self):
        encoder = F2FEncoder()
        assert encoder.sample_rate == 44100
        assert encoder.samples_per_bit == 28
        assert encoder.waveform == "square"

    def test_samples_per_bit_override(self):
        encoder = F2FEncoder(sample_rate=44100, bit_rate=1000, samples_per_bit=20)
        assert encoder.samples_per_bit == 20
        assert encoder.bit_rate == 44100 / 20

    def test_zero_cell(self):
        encoder = F2FEncoder(samples_per_bit=20)
        samples = encoder.encode_bits([0])
        assert np.all(samples[:10] == 1.0)
        assert np.all(samples[10:] == -1.0)

    def test_one_cell(self):
        encoder = F2FEncoder(samples_per_bit=20)
        samples = encoder.encode_bits([1])
        assert np.all(samples[:10] == -1.0)
        assert np.all(samples[10:] == 1.0)

    def test_zero_has_no_start_transition(self):
        encoder = F2FEncoder(samples_per_bit=20)
        samples = encoder.encode_bits([0, 0])
        assert samples[19] == samples[20]
        assert transitions(samples) == 2

    def test_one_has_start_transition(self):
        encoder = F2FEncoder(samples_per_bit=20)
        samples = encoder.encode_bits([1, 1])
        assert samples[19] != samples[20]
        assert transitions(samples) == 3

    def test_transition_counts(self):
        encoder = F2FEncoder(samples_per_bit=20)
        # Each cell has a middle transition; the boundary before a 1 adds one
        assert transitions(encoder.encode_bits([0, 0, 0])) == 3
        assert transitions(encoder.encode_bits([1, 1, 1])) == 5
        assert transitions(encoder.encode_bits([0, 1, 0, 1])) == 6

    def test_odd_samples_per_bit(self):
        encoder = F2FEncoder(samples_per_bit=21)
        samples = encoder.encode_bits([0])
        assert len(samples) == 21
        assert np.all(samples[:10] == 1.0)
        assert np.all(samples[10:] == -1.0)

    def test_fractional_samples_per_bit(self):
        encoder = F2FEncoder(sample_rate=48000, bit_rate=1575)
        samples = encoder.encode_bits([0] * 100)
        assert abs(len(samples) - 100 * encoder.samples_per_bit) < 1

    def test_state_reset_between_calls(self):
        encoder = F2FEncoder(samples_per_bit=20)
        first = encoder.encode_bits([1, 0, 1])
        second = encoder.encode_bits([1, 0, 1])
        assert np.array_equal(first, second)

    def test_empty_bits(self):
        assert len(F2FEncoder().encode_bits([])) == 0

    def test_too_few_samples_per_bit(self):
        with pytest.raises(InvalidArgument):
            F2FEncoder(samples_per_bit=1)

    def test_unknown_waveform(self):
        with pytest.raises(InvalidArgument):
            F2FEncoder(waveform="triangle")


class TestGenerate:
    """Test track waveform generation."""

    def test_waveform_length(self):
        encoder = F2FEncoder(sample_rate=44100, samples_per_bit=20)
        samples = encoder.generate(";0?", leading_zeros=0)
        assert len(samples) == 400

    def test_leading_zeros_length(self):
        encoder = F2FEncoder(samples_per_bit=20)
        samples = encoder.generate(";0?", leading_zeros=20)
        assert len(samples) == (20 + 20 + 20) * 20

    def test_samples_in_range(self):
        samples = F2FEncoder().generate(";123456789=99?")
        assert samples.dtype == np.float32
        assert np.all(np.abs(samples) <= 1.0)

    def test_amplitude(self):
        samples = F2FEncoder(amplitude=0.5).generate(";1?")
        assert np.isclose(np.max(np.abs(samples)), 0.5)

    def test_reverse_is_time_reversed(self):
        encoder = F2FEncoder(samples_per_bit=20)
        forward = encoder.generate(";54321=11?")
        reverse = encoder.generate_reverse(";54321=11?")
        assert np.array_equal(reverse, forward[::-1])

    def test_mimic_swipe(self):
        encoder = F2FEncoder(sample_rate=44100, samples_per_bit=20)
        forward = encoder.generate(";1?")
        samples = encoder.mimic_swipe(";1?", silence_ms=500)
        assert len(samples) == 2 * len(forward) + 22050
        assert np.all(samples[len(forward):len(forward) + 22050] == 0)

    def test_sine_waveform(self):
        square = F2FEncoder(samples_per_bit=28).generate(";1?")
        sine = F2FEncoder(samples_per_bit=28, waveform="sine").generate(";1?")
        assert len(sine) == len(square)
        assert sine.dtype == np.float32
        assert np.isclose(np.max(np.abs(sine)), 1.0)
        assert not np.array_equal(sine, square)

    def test_sine_keeps_edge_positions(self):
        """Ramps are centred on the square edges and the plateaus stay flat."""
        square = F2FEncoder(samples_per_bit=20).generate(";1?")
        sine = F2FEncoder(samples_per_bit=20, waveform="sine").generate(";1?")
        assert find_peaks(sine) == []
        assert find_peaks(differentiate(sine)) == find_peaks(differentiate(square))

    def test_sine_short_cells_stay_square(self):
        square = F2FEncoder(samples_per_bit=6).generate(";1?")
        sine = F2FEncoder(samples_per_bit=6, waveform="sine").generate(";1?")
        assert np.array_equal(sine, square)

    def test_illegal_character(self):
        with pytest.raises(InvalidArgument):
            F2FEncoder().generate(";12AB?")


class TestSynthesize:
    """Test module-level synthesis helpers."""

    def test_matches_encoder(self):
        expected = F2FEncoder(samples_per_bit=20).generate(";1?", 10)
        samples = synthesize(";1?", samples_per_bit=20, leading_zeros=10)
        assert np.array_equal(samples, expected)

    def test_reverse(self):
        expected = F2FEncoder(samples_per_bit=20).generate_reverse(";1?")
        assert np.array_equal(synthesize(";1?", samples_per_bit=20, reverse=True), expected)

    def test_bit_rate(self):
        samples = synthesize(";0?", sample_rate=44100, bit_rate=2205, leading_zeros=0)
        assert len(samples) == 20 * 20

    def test_to_pcm16(self):
        pcm = to_pcm16(np.array([1.0, -1.0, 0.0, 2.0, 0.5]))
        assert pcm.dtype == np.int16
        assert pcm.tolist() == [32767, -32767, 0, 32767, 16384]
