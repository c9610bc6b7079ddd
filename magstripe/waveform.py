"""
Aiken Biphase (F2F) waveform synthesis for magnetic stripe tracks.

F2F encoding rules used here:
1. There's always a transition in the MIDDLE of each bit cell
2. Logic 1: Additional transition at the start of the cell
3. Logic 0: No transition at the start

So a 0 spans one full-period interval between transitions and a 1 spans
two half-period intervals.

Waveform Types:
- "square": Instantaneous transitions (what a write head or MagSpoof coil sees)
- "sine": Raised-cosine transitions with flat plateaus between them
"""

from typing import List, Literal, Optional, Sequence

import numpy as np
from scipy import signal

from . import SAMPLE_RATE, BIT_RATE, LEADING_ZEROS, PCM_FULL_SCALE
from .errors import InvalidArgument
from .tracks import track_to_bits


WaveformType = Literal["square", "sine"]


def _raised_cosine_edges(samples: np.ndarray, samples_per_bit: float) -> np.ndarray:
    """
    Replace each level step with a raised-cosine ramp centred on it.

    Ramps span at most half of the shortest half cell, so every plateau
    keeps at least two flat samples and each edge keeps its position.
    """
    ramp_half = (int(samples_per_bit) // 2) // 4
    if ramp_half == 0:
        return samples.astype(np.float32)

    # Ramp slope follows a Hann window, so the derivative peaks at the edge
    steps = signal.windows.hann(2 * ramp_half + 3)[1:-1]
    ramp = np.cumsum(steps)[:-1] / np.sum(steps)

    shaped = samples.astype(np.float64)
    for edge in np.flatnonzero(np.diff(samples)) + 1:
        before, after = samples[edge - 1], samples[edge]
        shaped[edge - ramp_half:edge + ramp_half] = before + (after - before) * ramp

    return shaped.astype(np.float32)


def to_pcm16(samples: np.ndarray) -> np.ndarray:
    """Convert float samples (-1.0 to 1.0) to full-scale signed 16-bit PCM."""
    scaled = np.round(np.clip(samples, -1.0, 1.0) * PCM_FULL_SCALE)
    return scaled.astype(np.int16)


class F2FEncoder:
    """
    F2F (Aiken Biphase) encoder producing float PCM samples.

    The bit cell length is either injected directly with samples_per_bit or
    derived from sample_rate / bit_rate. Fractional cell lengths are handled
    with a sample accumulator so long streams keep their timing.
    """

    def __init__(
        self,
        sample_rate: int = SAMPLE_RATE,
        bit_rate: float = BIT_RATE,
        samples_per_bit: Optional[float] = None,
        amplitude: float = 1.0,
        waveform: WaveformType = "square",
    ):
        """
        Initialize encoder.

        Args:
            sample_rate: Output audio sample rate (Hz)
            bit_rate: Bits per second, used when samples_per_bit is not given
            samples_per_bit: Samples per bit cell (overrides bit_rate)
            amplitude: Output amplitude (0.0 to 1.0)
            waveform: "square" or "sine"
        """
        if samples_per_bit is None:
            if bit_rate <= 0:
                raise InvalidArgument("bit_rate must be positive")
            samples_per_bit = sample_rate / bit_rate
        if samples_per_bit < 2:
            raise InvalidArgument(
                f"A bit cell needs at least 2 samples, got {samples_per_bit}"
            )
        if waveform not in ("square", "sine"):
            raise InvalidArgument(f"Unknown waveform type: {waveform}")

        self.sample_rate = sample_rate
        self.samples_per_bit = samples_per_bit
        self.bit_rate = sample_rate / samples_per_bit
        self.amplitude = amplitude
        self.waveform = waveform
        self.level = 1.0
        self.sample_accumulator = 0.0

    def reset(self):
        """Reset encoder state."""
        self.level = 1.0
        self.sample_accumulator = 0.0

    def encode_bit(self, bit: int) -> np.ndarray:
        """Encode a single bit cell."""
        if bit:
            # Logic 1: transition at the start of the cell
            self.level = -self.level
        first_half_level = self.level

        # Always transition in the middle
        self.level = -self.level
        second_half_level = self.level

        # Calculate sample counts with accumulator for precise timing
        self.sample_accumulator += self.samples_per_bit
        total_samples = int(self.sample_accumulator)
        self.sample_accumulator -= total_samples

        half_samples = total_samples // 2
        other_half = total_samples - half_samples

        first_half = np.full(half_samples, first_half_level, dtype=np.float32)
        second_half = np.full(other_half, second_half_level, dtype=np.float32)
        return np.concatenate([first_half, second_half])

    def encode_bits(self, bits: Sequence[int]) -> np.ndarray:
        """Encode a bitstream to audio samples, starting from a fresh state."""
        self.reset()
        if len(bits) == 0:
            return np.zeros(0, dtype=np.float32)

        samples = np.concatenate([self.encode_bit(bit) for bit in bits])

        if self.waveform == "sine":
            samples = _raised_cosine_edges(samples, self.samples_per_bit)

        return (samples * self.amplitude).astype(np.float32)

    def bitstream(self, track: str, leading_zeros: int = LEADING_ZEROS) -> List[int]:
        """Bitstream for a track string, zeros on both sides."""
        return track_to_bits(track, leading_zeros)

    def generate(self, track: str, leading_zeros: int = LEADING_ZEROS) -> np.ndarray:
        """
        Generate a forward swipe waveform.

        Args:
            track: Track string (Track 1 if it starts with '%', Track 2 otherwise)
            leading_zeros: Clocking zeros before and after the data

        Returns:
            float32 samples in -amplitude..amplitude
        """
        return self.encode_bits(self.bitstream(track, leading_zeros))

    def generate_reverse(self, track: str, leading_zeros: int = LEADING_ZEROS) -> np.ndarray:
        """
        Generate a reverse swipe waveform.

        This is the forward waveform played backwards: bit order and the
        half-cell order inside each bit are both reversed.
        """
        return self.generate(track, leading_zeros)[::-1].copy()

    def mimic_swipe(
        self,
        track: str,
        leading_zeros: int = LEADING_ZEROS,
        silence_ms: int = 500,
    ) -> np.ndarray:
        """Forward swipe, silence, then reverse swipe."""
        forward = self.generate(track, leading_zeros)
        reverse = self.generate_reverse(track, leading_zeros)
        silence = np.zeros(self.sample_rate * silence_ms // 1000, dtype=np.float32)
        return np.concatenate([forward, silence, reverse])


def synthesize(
    track: str,
    sample_rate: int = SAMPLE_RATE,
    bit_rate: float = BIT_RATE,
    samples_per_bit: Optional[float] = None,
    leading_zeros: int = LEADING_ZEROS,
    reverse: bool = False,
    waveform: WaveformType = "square",
) -> np.ndarray:
    """
    Synthesize PCM samples for a track string.

    Args:
        track: Track string
        sample_rate: Audio sample rate (Hz)
        bit_rate: Bits per second
        samples_per_bit: Samples per bit cell (overrides bit_rate)
        leading_zeros: Clocking zeros before and after the data
        reverse: Generate a reverse swipe
        waveform: "square" or "sine"

    Returns:
        float32 samples (-1.0 to 1.0)
    """
    encoder = F2FEncoder(
        sample_rate=sample_rate,
        bit_rate=bit_rate,
        samples_per_bit=samples_per_bit,
        waveform=waveform,
    )
    if reverse:
        return encoder.generate_reverse(track, leading_zeros)
    return encoder.generate(track, leading_zeros)
