"""
magstripe - Magnetic stripe F2F audio codec.
Converts between ISO/IEC 7811 track strings and Aiken Biphase PCM audio.
"""

__version__ = "0.1.0"

# Audio constants
SAMPLE_RATE = 44100  # Hz (default)
BIT_RATE = 1575  # bits per second (28 samples per bit at 44.1 kHz)
SAMPLES_PER_BIT = SAMPLE_RATE / BIT_RATE
LEADING_ZEROS = 20  # clocking zeros before and after the track data
PCM_FULL_SCALE = 32767

# Decoder tuning
NOISE_FLOOR_RATIO = 0.1  # of the loudest sample
THRESHOLD_RATIO = 0.75  # short/long interval cutoff relative to one bit period
MIN_PEAKS = 10  # flux transitions needed before bits are extracted

# Swipe segmentation
ZCR_THRESHOLD = 0.1
WINDOW_SIZE = 1024

# Track field limits
MAX_PAN_LENGTH = 19
MAX_NAME_LENGTH = 26

from .errors import (
    MagstripeError,
    InvalidArgument,
    DecodeError,
    ParityError,
    LrcError,
    InsufficientData,
)
from .lrc import calculate_lrc, validate_lrc, column_lrc
from .tracks import (
    TrackFormat,
    TRACK1,
    TRACK2,
    ParsedTrack1,
    ParsedTrack2,
    generate_track1,
    generate_track2,
    parse_track1,
    parse_track2,
    track_to_bits,
)
from .waveform import F2FEncoder, synthesize, to_pcm16
from .flux import find_peaks, differentiate, extract_bits
from .decoder import F2FDecoder, DecodeOutcome, decode_bits, decode_track, decode_audio
from .segmenter import Swipe, find_swipes, trim
from .wavfile import read_wav, write_wav, export_swipe

__all__ = [
    "MagstripeError",
    "InvalidArgument",
    "DecodeError",
    "ParityError",
    "LrcError",
    "InsufficientData",
    "calculate_lrc",
    "validate_lrc",
    "column_lrc",
    "TrackFormat",
    "TRACK1",
    "TRACK2",
    "ParsedTrack1",
    "ParsedTrack2",
    "generate_track1",
    "generate_track2",
    "parse_track1",
    "parse_track2",
    "track_to_bits",
    "F2FEncoder",
    "synthesize",
    "to_pcm16",
    "find_peaks",
    "differentiate",
    "extract_bits",
    "F2FDecoder",
    "DecodeOutcome",
    "decode_bits",
    "decode_track",
    "decode_audio",
    "Swipe",
    "find_swipes",
    "trim",
    "read_wav",
    "write_wav",
    "export_swipe",
]
