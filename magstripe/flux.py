"""
Flux transition detection and F2F bit extraction.

A read head produces a voltage peak at every flux transition, alternating
in polarity. Peaks are located in the PCM signal, the distances between
them are measured, and each distance is classified as a full bit period
(logic 0) or half of one (two halves make a logic 1).
"""

from typing import List, Sequence

import numpy as np

from . import NOISE_FLOOR_RATIO, THRESHOLD_RATIO, MIN_PEAKS
from .errors import InsufficientData

# Intervals averaged to seed the short/long threshold
SEED_INTERVALS = 10

# Preamble search: consistent window of clocking zeros
PREAMBLE_WINDOW = 5
PREAMBLE_SEARCH_LIMIT = 50
PREAMBLE_MAX_VARIANCE = 0.04  # relative to mean squared


def find_peaks(samples: Sequence[float], noise_floor_ratio: float = NOISE_FLOOR_RATIO) -> List[int]:
    """
    Find alternating positive/negative peaks (flux transitions).

    Samples quieter than noise_floor_ratio * max(|sample|) are ignored.
    After a positive peak only a negative peak is accepted next, and vice
    versa. Noisy or clipped input simply yields fewer peaks.

    Args:
        samples: PCM samples (int16 or float)
        noise_floor_ratio: Noise floor relative to the loudest sample

    Returns:
        Strictly increasing sample indices
    """
    s = np.asarray(samples, dtype=np.float64)
    if len(s) < 3:
        return []

    noise_floor = np.max(np.abs(s)) * noise_floor_ratio
    if noise_floor <= 0:
        return []

    # Start with the polarity of the first significant sample
    significant = np.flatnonzero(np.abs(s) > noise_floor)
    if len(significant) == 0:
        return []
    looking_for_positive = bool(s[significant[0]] > 0)

    prev, curr, nxt = s[:-2], s[1:-1], s[2:]
    loud = np.abs(curr) >= noise_floor
    is_max = loud & (curr > 0) & (curr > prev) & (curr > nxt)
    is_min = loud & (curr < 0) & (curr < prev) & (curr < nxt)

    peaks = []
    for i in np.flatnonzero(is_max | is_min):
        if looking_for_positive and is_max[i]:
            peaks.append(int(i) + 1)
            looking_for_positive = False
        elif not looking_for_positive and is_min[i]:
            peaks.append(int(i) + 1)
            looking_for_positive = True

    return peaks


def differentiate(samples: Sequence[float]) -> np.ndarray:
    """
    Discrete derivative of the signal (halved, first sample 0).

    Turns the flat edges of a square wave into single-sample spikes that
    find_peaks can locate.
    """
    s = np.asarray(samples, dtype=np.float64)
    diff = np.zeros(len(s), dtype=np.float64)
    if len(s) > 1:
        diff[1:] = np.diff(s) / 2
    return diff


def intervals(peaks: Sequence[int]) -> List[int]:
    """Distances in samples between consecutive peaks."""
    return [int(peaks[i + 1] - peaks[i]) for i in range(len(peaks) - 1)]


def _find_preamble(gaps: List[int]):
    """Locate a run of consistent clocking-zero intervals near the start."""
    search_limit = min(len(gaps), PREAMBLE_SEARCH_LIMIT)
    for i in range(search_limit - PREAMBLE_WINDOW):
        window = gaps[i:i + PREAMBLE_WINDOW]
        avg = sum(window) / PREAMBLE_WINDOW
        variance = sum((g - avg) ** 2 for g in window) / PREAMBLE_WINDOW
        if variance < PREAMBLE_MAX_VARIANCE * avg * avg:
            return i, avg
    return None


def extract_bits(
    peaks: Sequence[int],
    threshold_ratio: float = THRESHOLD_RATIO,
    find_preamble: bool = False,
    min_peaks: int = MIN_PEAKS,
) -> List[int]:
    """
    Classify peak intervals into bits with an adaptive threshold.

    The threshold is re-anchored after every bit to the bit period just
    observed, so the decoder follows a hand swipe that speeds up or slows
    down.

    Args:
        peaks: Peak indices from find_peaks
        threshold_ratio: Short/long cutoff as a fraction of one bit period
        find_preamble: Seed the threshold from a consistent run of zeros
            instead of the first intervals
        min_peaks: Minimum number of peaks required

    Returns:
        List of bits

    Raises:
        InsufficientData: fewer than min_peaks peaks
    """
    if len(peaks) < max(min_peaks, 2):
        raise InsufficientData(f"Need at least {min_peaks} peaks, found {len(peaks)}")

    gaps = intervals(peaks)

    start = 0
    preamble = _find_preamble(gaps) if find_preamble else None
    if preamble is not None:
        start, avg = preamble
        threshold = avg * threshold_ratio
    else:
        seed = gaps[:SEED_INTERVALS]
        threshold = sum(seed) / len(seed) * threshold_ratio

    bits = []
    i = start
    while i < len(gaps):
        gap = gaps[i]
        if gap < threshold:
            # Short: first half of a 1, the partner half follows
            if i + 1 >= len(gaps):
                break
            bits.append(1)
            threshold = (gap + gaps[i + 1]) * threshold_ratio
            i += 2
        else:
            bits.append(0)
            threshold = gap * threshold_ratio
            i += 1

    return bits
