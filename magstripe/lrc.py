"""
Longitudinal Redundancy Check (LRC) for magnetic stripe tracks.

Two forms are used:
- calculate_lrc / validate_lrc: XOR fold over the characters of a track
  string. This is the character appended by generate_track1/2.
- column_lrc: XOR of each bit column over the encoded character rows. This
  is the LRC character written to (and checked on) the stripe itself.
"""

from typing import Iterable, List, Sequence


def calculate_lrc(text: str) -> str:
    """
    Calculate the LRC character for a track string.

    Args:
        text: Track content, usually start sentinel through end sentinel

    Returns:
        Single character whose code is the XOR of all code points (8-bit)
    """
    lrc = 0
    for char in text:
        lrc ^= ord(char)
    return chr(lrc & 0xFF)


def validate_lrc(text_with_lrc: str) -> bool:
    """Check that the last character is the LRC of everything before it."""
    if not text_with_lrc:
        return False
    return calculate_lrc(text_with_lrc[:-1]) == text_with_lrc[-1]


def column_lrc(rows: Iterable[Sequence[int]], width: int) -> List[int]:
    """
    Column-wise XOR over bit rows.

    Only the first `width` bits of each row are folded, so rows that carry a
    trailing parity bit can be passed as-is with width = data bits.
    """
    register = [0] * width
    for row in rows:
        for x in range(width):
            register[x] ^= row[x]
    return register
