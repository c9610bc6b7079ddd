"""
Magnetic stripe track decoder.

Turns a bitstream (or raw PCM audio) back into track strings. Each
combination of track format and swipe direction is a hypothesis; they are
tried in order and the first one that passes sentinel, parity and LRC
checks wins.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from . import NOISE_FLOOR_RATIO, THRESHOLD_RATIO, MIN_PEAKS, ZCR_THRESHOLD, WINDOW_SIZE
from .errors import DecodeError, InvalidArgument, InsufficientData, LrcError, ParityError
from .flux import differentiate, extract_bits, find_peaks
from .lrc import column_lrc
from .segmenter import find_swipes, trim
from .tracks import TRACK1, TRACK2, TrackFormat, encode_char, parity_bit
from .wavfile import read_wav

# Module-level logger
_logger = logging.getLogger(__name__)

Bits = Union[str, Sequence[int]]


@dataclass(frozen=True)
class Hypothesis:
    """A track format read in one swipe direction."""

    fmt: TrackFormat
    reverse: bool = False

    @property
    def label(self) -> str:
        direction = "reverse" if self.reverse else "forward"
        return f"{self.fmt.name} {direction}"


HYPOTHESES = (
    Hypothesis(TRACK1),
    Hypothesis(TRACK1, reverse=True),
    Hypothesis(TRACK2),
    Hypothesis(TRACK2, reverse=True),
)


@dataclass
class DecodeOutcome:
    """Result of trying a list of hypotheses on one bitstream."""

    value: Optional[str] = None
    hypothesis: Optional[Hypothesis] = None
    failures: List[Tuple[Hypothesis, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.value is not None

    def describe_failures(self) -> str:
        return "; ".join(f"{h.label}: {reason}" for h, reason in self.failures)


def _to_bitstring(bits: Bits) -> str:
    """Normalize bits to a '0'/'1' string."""
    if isinstance(bits, str):
        if bits.strip("01"):
            raise InvalidArgument("Bit string may only contain '0' and '1'")
        return bits
    return "".join("1" if bit else "0" for bit in bits)


def _pattern(char: str, fmt: TrackFormat) -> str:
    return "".join(str(bit) for bit in encode_char(char, fmt))


def decode_track(bits: Bits, fmt: TrackFormat) -> str:
    """
    Decode one track format from a bitstream, reading it as given.

    The end sentinel is only searched for on character boundaries counted
    from the start sentinel, and one more character (the LRC) must follow it.

    Args:
        bits: Bitstream as '0'/'1' string or sequence of ints
        fmt: Track format to decode

    Returns:
        Characters from start sentinel through end sentinel (LRC excluded)

    Raises:
        DecodeError: no start/end sentinel, or no room for the LRC
        ParityError: a character fails odd parity
        LrcError: the LRC character does not match
    """
    data = _to_bitstring(bits)
    width = fmt.bits_per_char

    start = data.find(_pattern(fmt.start_sentinel, fmt))
    if start < 0:
        raise DecodeError("No start sentinel found")

    end_pattern = _pattern(fmt.end_sentinel, fmt)
    end = -1
    position = start + width
    while position <= len(data) - width:
        if data[position:position + width] == end_pattern:
            end = position
            break
        position += width

    if end < 0:
        raise DecodeError("No end sentinel found")

    lrc_start = end + width
    if lrc_start + width > len(data):
        raise DecodeError("Not enough data for LRC")

    chars = []
    rows = []
    for position in range(start, end + 1, width):
        row = [1 if c == "1" else 0 for c in data[position:position + width]]
        if sum(row) % 2 == 0:
            raise ParityError(f"Parity error at bit {position}", index=position)

        value = 0
        for x, bit in enumerate(row[:-1]):
            value |= bit << x
        chars.append(fmt.char_for(value))
        rows.append(row)

    register = column_lrc(rows, fmt.data_bits)
    lrc_row = [1 if c == "1" else 0 for c in data[lrc_start:lrc_start + width]]
    for x in range(fmt.data_bits):
        if lrc_row[x] != register[x]:
            raise LrcError(f"LRC mismatch at bit {x}")
    if lrc_row[-1] != parity_bit(register):
        raise LrcError("LRC parity error")

    return "".join(chars)


def first_success(bits: Bits, hypotheses: Sequence[Hypothesis] = HYPOTHESES) -> DecodeOutcome:
    """
    Try each hypothesis in order and return the first that decodes.

    Failures are collected in the outcome rather than raised.
    """
    data = _to_bitstring(bits)
    reversed_data = data[::-1]

    outcome = DecodeOutcome()
    for hypothesis in hypotheses:
        try:
            value = decode_track(reversed_data if hypothesis.reverse else data, hypothesis.fmt)
        except DecodeError as e:
            _logger.debug(f"{hypothesis.label} failed: {e}")
            outcome.failures.append((hypothesis, str(e)))
            continue

        _logger.debug(f"{hypothesis.label} decoded {value!r}")
        outcome.value = value
        outcome.hypothesis = hypothesis
        return outcome

    return outcome


def decode_bits(bits: Bits) -> str:
    """
    Decode a bitstream as Track 1 or Track 2, forward or reverse.

    Raises:
        DecodeError: if no hypothesis decodes
    """
    outcome = first_success(bits)
    if not outcome.ok:
        raise DecodeError(
            f"Could not decode data as Track 1 or Track 2 ({outcome.describe_failures()})"
        )
    return outcome.value


class F2FDecoder:
    """
    Decodes magnetic stripe audio into track strings.

    Peaks are looked for in the raw signal first. A digitally generated
    square wave has flat tops and no peaks, so when too few are found, or
    the raw peaks decode to nothing, the derivative of the signal is used.
    """

    def __init__(
        self,
        noise_floor_ratio: float = NOISE_FLOOR_RATIO,
        threshold_ratio: float = THRESHOLD_RATIO,
        min_peaks: int = MIN_PEAKS,
        find_preamble: bool = False,
    ):
        """
        Initialize decoder.

        Args:
            noise_floor_ratio: Peak noise floor relative to the loudest sample
            threshold_ratio: Short/long interval cutoff relative to one bit period
            min_peaks: Minimum peaks needed to extract bits
            find_preamble: Seed the bit threshold from the clocking zeros
        """
        self.noise_floor_ratio = noise_floor_ratio
        self.threshold_ratio = threshold_ratio
        self.min_peaks = min_peaks
        self.find_preamble = find_preamble

    def _peak_sets(self, samples: Sequence[float]):
        """Peak lists to try in order: raw signal, then its derivative."""
        peaks = find_peaks(samples, self.noise_floor_ratio)
        if len(peaks) >= self.min_peaks:
            yield "raw signal", peaks
        else:
            _logger.debug(f"Only {len(peaks)} peaks in raw signal, using derivative")
        yield "derivative", find_peaks(differentiate(samples), self.noise_floor_ratio)

    def _extract(self, peaks: Sequence[int]) -> List[int]:
        bits = extract_bits(
            peaks,
            threshold_ratio=self.threshold_ratio,
            find_preamble=self.find_preamble,
            min_peaks=self.min_peaks,
        )
        _logger.debug(f"{len(peaks)} peaks -> {len(bits)} bits")
        return bits

    def bits_from_samples(self, samples: Sequence[float]) -> List[int]:
        """
        Extract the bitstream from PCM samples.

        Raises:
            InsufficientData: too few flux transitions in raw and derived signal
        """
        _, peaks = next(self._peak_sets(samples))
        return self._extract(peaks)

    def decode(self, samples: Sequence[float]) -> List[str]:
        """
        Decode audio into candidate track strings.

        The bitstream is read forward and then reversed (the card may have
        been swiped either way). Within each direction Track 1 is tried
        before Track 2. When the raw signal's peaks give no track, for
        instance because of filter ringing, the derivative is tried.

        Returns:
            Distinct track strings found (0 to 2 entries)
        """
        for source, peaks in self._peak_sets(samples):
            try:
                bits = self._extract(peaks)
            except InsufficientData as e:
                _logger.debug(f"No bits extracted from {source}: {e}")
                continue

            results = []
            for reverse in (False, True):
                hypotheses = [h for h in HYPOTHESES if h.reverse == reverse]
                outcome = first_success(bits, hypotheses)
                if outcome.ok and outcome.value not in results:
                    results.append(outcome.value)

            if results:
                return results
            _logger.debug(f"No track decoded from {source}")

        return []


def decode_audio(samples: Sequence[float], **kwargs) -> List[str]:
    """Decode audio samples with a default F2FDecoder."""
    return F2FDecoder(**kwargs).decode(samples)


def decode_file(
    file_path: Union[str, Path],
    segment: bool = False,
    zcr_threshold: float = ZCR_THRESHOLD,
    window_size: int = WINDOW_SIZE,
    decoder: Optional[F2FDecoder] = None,
) -> List[str]:
    """
    Decode track strings from a WAV file.

    Args:
        file_path: Path to audio file
        segment: Split the recording into swipes and decode each one
        zcr_threshold: Zero-crossing rate that marks swipe activity
        window_size: Segmentation window in samples
        decoder: Decoder to use (default: F2FDecoder())

    Returns:
        Distinct track strings in the order found
    """
    samples, sample_rate = read_wav(file_path)
    decoder = decoder or F2FDecoder()

    if not segment:
        return decoder.decode(samples)

    swipes = find_swipes(samples, zcr_threshold, window_size)
    _logger.info(f"{len(swipes)} swipes found in {file_path}")

    results = []
    for swipe in swipes:
        for track in decoder.decode(trim(samples, swipe)):
            if track not in results:
                results.append(track)
    return results
