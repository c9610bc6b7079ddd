"""
WAV file boundary: 16-bit mono PCM in and out.
"""

import io
import logging
from pathlib import Path
from typing import Sequence, Tuple, Union

import numpy as np
import soundfile as sf

from .segmenter import Swipe, trim
from .waveform import to_pcm16

# Module-level logger
_logger = logging.getLogger(__name__)


def _as_pcm16(samples: Sequence[float]) -> np.ndarray:
    samples = np.asarray(samples)
    if samples.dtype == np.int16:
        return samples
    if np.issubdtype(samples.dtype, np.floating):
        return to_pcm16(samples)
    return np.clip(samples, -32768, 32767).astype(np.int16)


def wav_bytes(samples: Sequence[float], sample_rate: int) -> bytes:
    """
    Serialize samples to a complete WAV file image.

    Floats are scaled to full range. The image is a 44-byte RIFF/WAVE
    header (PCM, mono, 16-bit) followed by little-endian samples.
    """
    buffer = io.BytesIO()
    sf.write(buffer, _as_pcm16(samples), sample_rate, subtype='PCM_16', format='WAV')
    return buffer.getvalue()


def write_wav(output_path: Union[str, Path], samples: Sequence[float], sample_rate: int):
    """Write samples to a mono 16-bit WAV file."""
    sf.write(str(output_path), _as_pcm16(samples), sample_rate, subtype='PCM_16', format='WAV')
    _logger.debug(f"Wrote {len(samples)} samples to {output_path}")


def read_wav(file_path: Union[str, Path]) -> Tuple[np.ndarray, int]:
    """
    Read an audio file as 16-bit samples.

    Uses the first channel if the file has more than one.

    Returns:
        Tuple of (int16 samples, sample_rate)
    """
    samples, sample_rate = sf.read(str(file_path), dtype="int16")
    if samples.ndim > 1:
        samples = samples[:, 0]
    _logger.debug(f"Read {len(samples)} samples at {sample_rate} Hz from {file_path}")
    return samples, sample_rate


def export_swipe(
    output_path: Union[str, Path],
    samples: Sequence[float],
    swipe: Swipe,
    sample_rate: int,
):
    """Write the samples of one swipe to its own WAV file."""
    write_wav(output_path, trim(samples, swipe), sample_rate)
