"""
Swipe segmentation for long recordings.

A swipe shows up as a burst of rapid polarity changes. The recording is cut
into fixed windows, the zero-crossing rate (ZCR) of each is measured, and
runs of windows above the threshold become swipes.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from . import ZCR_THRESHOLD, WINDOW_SIZE
from .errors import InvalidArgument

# Module-level logger
_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Swipe:
    """Half-open sample range [start, end) containing one swipe."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start

    def slice(self) -> slice:
        return slice(self.start, self.end)

    def duration(self, sample_rate: int) -> float:
        """Duration in seconds."""
        return self.length / sample_rate


def zero_crossing_rates(samples: Sequence[float], window_size: int = WINDOW_SIZE) -> np.ndarray:
    """
    Zero-crossing rate of each window.

    Windows start at 0, w, 2w, ... strictly below len(samples) - w, so a
    trailing partial (or exactly final) window is not measured. Crossings
    are counted between consecutive samples inside the window.

    Returns:
        Array of crossings / window_size, one entry per window
    """
    if window_size <= 0:
        raise InvalidArgument("window_size must be positive")

    s = np.asarray(samples, dtype=np.float64)
    starts = np.arange(0, len(s) - window_size, window_size)
    if len(starts) == 0:
        return np.zeros(0)

    a, b = s[:-1], s[1:]
    crossing = ((a > 0) & (b <= 0)) | ((a < 0) & (b >= 0))
    cumulative = np.concatenate([[0], np.cumsum(crossing)])

    counts = cumulative[starts + window_size - 1] - cumulative[starts]
    return counts / window_size


def find_swipes(
    samples: Sequence[float],
    zcr_threshold: float = ZCR_THRESHOLD,
    window_size: int = WINDOW_SIZE,
    close_open: bool = False,
) -> List[Swipe]:
    """
    Find swipe regions in a recording.

    A swipe starts at the first window whose ZCR rises above the threshold
    and ends where a window's ZCR drops below it.

    Args:
        samples: PCM samples
        zcr_threshold: ZCR above which a window counts as activity
        window_size: Window length in samples
        close_open: Emit a swipe still active when the scan ends, ending at
            the end of the scanned range. By default it is dropped.

    Returns:
        List of swipes in order
    """
    rates = zero_crossing_rates(samples, window_size)

    swipes = []
    in_swipe = False
    start = 0
    for index, rate in enumerate(rates):
        if rate > zcr_threshold and not in_swipe:
            in_swipe = True
            start = index * window_size
        elif rate < zcr_threshold and in_swipe:
            in_swipe = False
            swipes.append(Swipe(start, index * window_size))

    if in_swipe:
        scan_end = len(rates) * window_size
        if close_open:
            swipes.append(Swipe(start, scan_end))
        else:
            _logger.debug(f"Dropping swipe still open at scan end ({start}..{scan_end})")

    _logger.debug(f"{len(swipes)} swipes in {len(rates)} windows")
    return swipes


def trim(samples: Sequence[float], swipe: Swipe):
    """Samples belonging to a swipe."""
    return samples[swipe.slice()]
