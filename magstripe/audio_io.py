"""
Audio device capture and playback.

sounddevice is imported when a device is actually used, so the codec runs
on machines without PortAudio.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from . import SAMPLE_RATE

# Module-level logger
_logger = logging.getLogger(__name__)


def list_input_devices() -> List[Tuple[int, str]]:
    """Audio input devices as (index, name) pairs."""
    import sounddevice as sd

    return [
        (i, dev['name'])
        for i, dev in enumerate(sd.query_devices())
        if dev['max_input_channels'] > 0
    ]


def record(
    seconds: float,
    sample_rate: int = SAMPLE_RATE,
    device: Optional[int] = None,
) -> np.ndarray:
    """
    Record a swipe from an audio input (e.g. a reader head on the mic jack).

    Args:
        seconds: Recording length
        sample_rate: Sample rate (Hz)
        device: Audio input device (None = default)

    Returns:
        Mono int16 samples
    """
    import sounddevice as sd

    frames = int(seconds * sample_rate)
    _logger.info(f"Recording {seconds}s at {sample_rate} Hz (device={device})")
    recording = sd.rec(frames, samplerate=sample_rate, channels=1, dtype='int16', device=device)
    sd.wait()
    return np.asarray(recording).reshape(-1)


def play(
    samples: Sequence[float],
    sample_rate: int = SAMPLE_RATE,
    device: Optional[int] = None,
):
    """Play samples and block until done (e.g. into a spoofing coil)."""
    import sounddevice as sd

    _logger.info(f"Playing {len(samples)} samples at {sample_rate} Hz (device={device})")
    sd.play(np.asarray(samples), samplerate=sample_rate, device=device)
    sd.wait()
