"""
ISO/IEC 7811 track formats and track string generation/parsing.

Track 1: 7-bit characters (6 data bits + odd parity), base ' ' (32)
Track 2: 5-bit characters (4 data bits + odd parity), base '0' (48)

Data bits are written least significant bit first, followed by the
parity bit.
"""

from dataclasses import dataclass
from typing import List, Optional

from . import LEADING_ZEROS, MAX_PAN_LENGTH, MAX_NAME_LENGTH
from .errors import InvalidArgument
from .lrc import calculate_lrc, validate_lrc, column_lrc

DIGITS = frozenset("0123456789")


@dataclass(frozen=True)
class TrackFormat:
    """Bit-level layout of one track type."""

    name: str
    bits_per_char: int
    base: int
    start_sentinel: str
    end_sentinel: str

    @property
    def data_bits(self) -> int:
        return self.bits_per_char - 1

    @property
    def max_value(self) -> int:
        return (1 << self.data_bits) - 1

    def char_for(self, value: int) -> str:
        return chr(value + self.base)


TRACK1 = TrackFormat("Track 1", 7, 32, "%", "?")
TRACK2 = TrackFormat("Track 2", 5, 48, ";", "?")


def format_for(track: str) -> TrackFormat:
    """Track 1 when the string starts with '%', Track 2 otherwise."""
    if track.startswith(TRACK1.start_sentinel):
        return TRACK1
    return TRACK2


def parity_bit(bits: List[int]) -> int:
    """Odd parity bit for the given data bits."""
    return (1 + sum(bits)) % 2


def encode_char(char: str, fmt: TrackFormat) -> List[int]:
    """
    Encode one character to its bit row.

    Args:
        char: Character within the format's character set
        fmt: Track format

    Returns:
        data bits (LSB first) followed by the odd parity bit
    """
    raw = ord(char) - fmt.base
    if not 0 <= raw <= fmt.max_value:
        raise InvalidArgument(f"Illegal character {char!r} for {fmt.name}")

    bits = [(raw >> i) & 1 for i in range(fmt.data_bits)]
    bits.append(parity_bit(bits))
    return bits


def track_to_bits(
    track: str,
    leading_zeros: int = LEADING_ZEROS,
    trailing_zeros: Optional[int] = None,
) -> List[int]:
    """
    Convert a track string to the bitstream written on the stripe.

    Characters from the start sentinel through the end sentinel are encoded,
    followed by the column LRC character. Anything after the end sentinel
    (such as the character appended by generate_track1/2) is not written;
    the stripe carries the column LRC in its place.

    Args:
        track: Track string
        leading_zeros: Clocking zeros before the data
        trailing_zeros: Clocking zeros after the data (default: leading_zeros)

    Returns:
        List of bits
    """
    if not track:
        raise InvalidArgument("Track data is empty")

    fmt = format_for(track)
    end = track.find(fmt.end_sentinel, 1)
    if end >= 0:
        track = track[:end + 1]

    if trailing_zeros is None:
        trailing_zeros = leading_zeros

    rows = [encode_char(char, fmt) for char in track]
    lrc = column_lrc(rows, fmt.data_bits)

    bits = [0] * leading_zeros
    for row in rows:
        bits.extend(row)
    bits.extend(lrc)
    bits.append(parity_bit(lrc))
    bits.extend([0] * trailing_zeros)
    return bits


def _check_digits(field: str, value: str):
    if not all(c in DIGITS for c in value):
        raise InvalidArgument(f"{field} must contain only digits, got {value!r}")


def _check_common(pan: str, expiration_date: str, service_code: str):
    if not pan or len(pan) > MAX_PAN_LENGTH:
        raise InvalidArgument(f"PAN must be 1 to {MAX_PAN_LENGTH} digits")
    if len(expiration_date) != 4:
        raise InvalidArgument("Expiration date must be 4 digits (YYMM)")
    if len(service_code) != 3:
        raise InvalidArgument("Service code must be 3 digits")
    _check_digits("PAN", pan)
    _check_digits("Expiration date", expiration_date)
    _check_digits("Service code", service_code)


def generate_track2(pan: str, expiration_date: str, service_code: str) -> str:
    """
    Build a Track 2 string: ;PAN=YYMMSSS? followed by its LRC.

    Raises:
        InvalidArgument: if a field has the wrong length or non-digit characters
    """
    _check_common(pan, expiration_date, service_code)

    track = f";{pan}={expiration_date}{service_code}?"
    return track + calculate_lrc(track)


def generate_track1(pan: str, name: str, expiration_date: str, service_code: str) -> str:
    """
    Build a Track 1 string: %BPAN^NAME^YYMMSSS? followed by its LRC.

    Format code 'B' is used (financial cards). The name must fit the Track 1
    character set (upper case, digits and punctuation) and cannot contain
    the field separator or sentinels.
    """
    _check_common(pan, expiration_date, service_code)
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidArgument(f"Name must be at most {MAX_NAME_LENGTH} characters")
    for char in name:
        if char in "^%?" or not 0 <= ord(char) - TRACK1.base <= TRACK1.max_value:
            raise InvalidArgument(f"Illegal character {char!r} in name")

    track = f"%B{pan}^{name}^{expiration_date}{service_code}?"
    return track + calculate_lrc(track)


@dataclass(frozen=True)
class ParsedTrack2:
    pan: str
    expiration_date: str
    service_code: str


@dataclass(frozen=True)
class ParsedTrack1:
    format_code: str
    pan: str
    name: str
    expiration_date: str
    service_code: str


def _split_framed(track: str, start_sentinel: str) -> Optional[str]:
    """Return the content between sentinels if framing and LRC are valid."""
    if len(track) < 3 or track[0] != start_sentinel or track[-2] != "?":
        return None
    if not validate_lrc(track):
        return None
    return track[1:-2]


def parse_track2(track: str) -> Optional[ParsedTrack2]:
    """
    Parse a Track 2 string (;PAN=YYMMSSS...?LRC).

    Returns:
        ParsedTrack2, or None if framing, LRC or field layout is invalid
    """
    body = _split_framed(track, TRACK2.start_sentinel)
    if body is None:
        return None

    parts = body.split("=")
    if len(parts) != 2:
        return None

    pan, remaining = parts
    if not pan or len(pan) > MAX_PAN_LENGTH or len(remaining) < 7:
        return None

    return ParsedTrack2(pan, remaining[:4], remaining[4:7])


def parse_track1(track: str) -> Optional[ParsedTrack1]:
    """
    Parse a Track 1 string (%BPAN^NAME^YYMMSSS...?LRC).

    Returns:
        ParsedTrack1, or None if framing, LRC or field layout is invalid
    """
    body = _split_framed(track, TRACK1.start_sentinel)
    if body is None or not body or not body[0].isalpha():
        return None

    parts = body[1:].split("^")
    if len(parts) != 3:
        return None

    pan, name, remaining = parts
    if not pan or len(pan) > MAX_PAN_LENGTH or len(name) > MAX_NAME_LENGTH:
        return None
    if len(remaining) < 7:
        return None

    return ParsedTrack1(body[0], pan, name, remaining[:4], remaining[4:7])
