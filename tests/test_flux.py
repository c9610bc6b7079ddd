"""
Tests for flux transition detection and bit extraction.
"""

import numpy as np
import pytest

from magstripe import F2FEncoder, InsufficientData, differentiate, extract_bits, find_peaks
from magstripe.flux import intervals


def peaks_from_gaps(gaps, start=5):
    """Peak positions producing the given intervals."""
    return [start] + list(start + np.cumsum(gaps))


class TestFindPeaks:
    """Test alternating peak detection."""

    def test_alternating_spikes(self):
        s = np.zeros(50)
        s[5], s[15], s[25] = 1.0, -1.0, 1.0
        assert find_peaks(s) == [5, 15, 25]

    def test_same_polarity_skipped(self):
        s = np.zeros(50)
        s[5], s[10], s[15] = 1.0, 0.8, -1.0
        assert find_peaks(s) == [5, 15]

    def test_below_noise_floor(self):
        s = np.zeros(50)
        s[5], s[15], s[25] = 1.0, -0.05, -1.0
        assert find_peaks(s) == [5, 25]

    def test_starts_with_negative(self):
        s = np.zeros(50)
        s[5], s[15] = -1.0, 1.0
        assert find_peaks(s) == [5, 15]

    def test_int16_input(self):
        s = np.zeros(50, dtype=np.int16)
        s[5], s[15] = 32767, -32767
        assert find_peaks(s) == [5, 15]

    def test_silence(self):
        assert find_peaks(np.zeros(100)) == []

    def test_empty(self):
        assert find_peaks([]) == []

    def test_square_wave_has_no_strict_peaks(self):
        samples = F2FEncoder(samples_per_bit=20).encode_bits([0] * 10)
        assert find_peaks(samples) == []

    def test_square_wave_derivative(self):
        samples = F2FEncoder(samples_per_bit=20).encode_bits([0] * 12)
        peaks = find_peaks(differentiate(samples))
        assert len(peaks) == 12
        assert intervals(peaks) == [20] * 11

    def test_peaks_strictly_increasing(self):
        samples = F2FEncoder(samples_per_bit=20).generate(";123456789=99?")
        peaks = find_peaks(differentiate(samples))
        assert all(b > a for a, b in zip(peaks, peaks[1:]))


class TestDifferentiate:
    """Test discrete derivative."""

    def test_values(self):
        assert differentiate([0, 2, 2, -2]).tolist() == [0, 1, 0, -2]

    def test_int16_does_not_overflow(self):
        d = differentiate(np.array([-32767, 32767], dtype=np.int16))
        assert d.tolist() == [0, 32767]

    def test_empty(self):
        assert len(differentiate([])) == 0


class TestExtractBits:
    """Test interval classification."""

    def test_zeros_and_ones(self):
        gaps = [20] * 10 + [10, 10] + [20] + [10, 10, 10, 10]
        bits = extract_bits(peaks_from_gaps(gaps))
        assert bits == [0] * 10 + [1, 0, 1, 1]

    def test_speed_change(self):
        """Threshold follows a swipe that slows down."""
        gaps = [20] * 10 + [22, 11, 11, 24, 12, 12, 26]
        bits = extract_bits(peaks_from_gaps(gaps))
        assert bits == [0] * 10 + [0, 1, 0, 1, 0]

    def test_unpaired_short_interval_ends_scan(self):
        gaps = [20] * 10 + [10]
        assert extract_bits(peaks_from_gaps(gaps)) == [0] * 10

    def test_too_few_peaks(self):
        with pytest.raises(InsufficientData):
            extract_bits([0, 20, 40, 60, 80])

    def test_custom_min_peaks(self):
        assert extract_bits([0, 20, 40], min_peaks=3) == [0, 0]

    def test_find_preamble(self):
        gaps = [3, 50, 7] + [20] * 10 + [10, 10]
        bits = extract_bits(peaks_from_gaps(gaps), find_preamble=True)
        assert bits == [0] * 10 + [1]

    def test_find_preamble_fallback(self):
        """Without a consistent run the first intervals seed the threshold."""
        gaps = [20, 10, 10] * 5
        peaks = peaks_from_gaps(gaps)
        assert extract_bits(peaks, find_preamble=True) == extract_bits(peaks)

    def test_intervals(self):
        assert intervals([0, 10, 30]) == [10, 20]
        assert intervals([7]) == []
