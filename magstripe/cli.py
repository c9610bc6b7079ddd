#!/usr/bin/env python3
"""
magstripe CLI - generate, synthesize and decode magnetic stripe tracks.
"""

import logging
import sys
from pathlib import Path

import click

from . import (
    SAMPLE_RATE,
    BIT_RATE,
    LEADING_ZEROS,
    ZCR_THRESHOLD,
    WINDOW_SIZE,
)
from . import audio_io
from .decoder import decode_file
from .errors import MagstripeError
from .segmenter import find_swipes
from .tracks import generate_track1, generate_track2, parse_track1, parse_track2
from .waveform import F2FEncoder
from .wavfile import export_swipe, read_wav, write_wav


def _fail(message: str):
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output with detailed logging",
)
def main(verbose: bool):
    """Magnetic stripe F2F audio codec."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        )


@main.command()
@click.argument("pan")
@click.argument("expiration_date")
@click.argument("service_code")
def track2(pan: str, expiration_date: str, service_code: str):
    """
    Print a Track 2 string with its LRC.

    Example:

        magstripe track2 1234567890123456 2512 101
    """
    try:
        click.echo(generate_track2(pan, expiration_date, service_code))
    except MagstripeError as e:
        _fail(str(e))


@main.command()
@click.argument("pan")
@click.argument("name")
@click.argument("expiration_date")
@click.argument("service_code")
def track1(pan: str, name: str, expiration_date: str, service_code: str):
    """
    Print a Track 1 string with its LRC.

    Example:

        magstripe track1 1234567890123456 "DOE/JOHN" 2512 101
    """
    try:
        click.echo(generate_track1(pan, name, expiration_date, service_code))
    except MagstripeError as e:
        _fail(str(e))


@main.command()
@click.argument("track")
def parse(track: str):
    """Parse a Track 1 or Track 2 string (including its LRC)."""
    parsed = parse_track1(track) if track.startswith("%") else parse_track2(track)
    if parsed is None:
        _fail("Invalid track data")

    if hasattr(parsed, "name"):
        click.echo(f"Name:         {parsed.name}")
    click.echo(f"PAN:          {parsed.pan}")
    click.echo(f"Expiration:   {parsed.expiration_date}")
    click.echo(f"Service code: {parsed.service_code}")


@main.command()
@click.argument("track")
@click.option(
    "-o", "--output",
    type=click.Path(),
    default="swipe.wav",
    help="Output WAV file path",
)
@click.option(
    "-s", "--sample-rate",
    type=int,
    default=SAMPLE_RATE,
    help=f"Sample rate in Hz (default: {SAMPLE_RATE})",
)
@click.option(
    "-b", "--bit-rate",
    type=float,
    default=BIT_RATE,
    help=f"Bits per second (default: {BIT_RATE})",
)
@click.option(
    "--samples-per-bit",
    type=float,
    default=None,
    help="Samples per bit cell (overrides --bit-rate)",
)
@click.option(
    "-z", "--zeros",
    type=int,
    default=LEADING_ZEROS,
    help=f"Clocking zeros before and after the data (default: {LEADING_ZEROS})",
)
@click.option(
    "-a", "--amplitude",
    type=float,
    default=1.0,
    help="Amplitude 0.0-1.0 (default: 1.0)",
)
@click.option(
    "--waveform",
    type=click.Choice(["square", "sine"]),
    default="square",
    help="Waveform type (default: square)",
)
@click.option("--reverse", is_flag=True, help="Generate a reverse swipe")
@click.option("--mimic", is_flag=True, help="Forward swipe, silence, reverse swipe")
def synth(
    track: str,
    output: str,
    sample_rate: int,
    bit_rate: float,
    samples_per_bit,
    zeros: int,
    amplitude: float,
    waveform: str,
    reverse: bool,
    mimic: bool,
):
    """
    Synthesize a swipe of TRACK to a WAV file.

    Examples:

        magstripe synth ";1234567890123456=2512101?" -o card.wav

        magstripe synth "%B123^NAME^2512101?" --reverse --samples-per-bit 20
    """
    try:
        encoder = F2FEncoder(
            sample_rate=sample_rate,
            bit_rate=bit_rate,
            samples_per_bit=samples_per_bit,
            amplitude=amplitude,
            waveform=waveform,
        )
        if mimic:
            samples = encoder.mimic_swipe(track, zeros)
        elif reverse:
            samples = encoder.generate_reverse(track, zeros)
        else:
            samples = encoder.generate(track, zeros)
        write_wav(output, samples, sample_rate)
    except MagstripeError as e:
        _fail(str(e))

    click.echo(f"✓ Generated {output} ({len(samples)} samples)")


@main.command()
@click.argument("input", type=click.Path(exists=True))
@click.option("--segment", is_flag=True, help="Split the recording into swipes first")
@click.option(
    "--zcr-threshold",
    type=float,
    default=ZCR_THRESHOLD,
    help=f"Swipe zero-crossing rate threshold (default: {ZCR_THRESHOLD})",
)
@click.option(
    "--window-size",
    type=int,
    default=WINDOW_SIZE,
    help=f"Swipe detection window in samples (default: {WINDOW_SIZE})",
)
def decode(input: str, segment: bool, zcr_threshold: float, window_size: int):
    """Decode track data from a WAV file."""
    try:
        tracks = decode_file(input, segment, zcr_threshold, window_size)
    except MagstripeError as e:
        _fail(str(e))

    if not tracks:
        _fail("No track data decoded.")

    for track in tracks:
        click.echo(track)


@main.command()
@click.argument("input", type=click.Path(exists=True))
@click.option(
    "--zcr-threshold",
    type=float,
    default=ZCR_THRESHOLD,
    help=f"Zero-crossing rate threshold (default: {ZCR_THRESHOLD})",
)
@click.option(
    "--window-size",
    type=int,
    default=WINDOW_SIZE,
    help=f"Window in samples (default: {WINDOW_SIZE})",
)
@click.option(
    "--export-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Write each swipe to its own WAV file in this directory",
)
def swipes(input: str, zcr_threshold: float, window_size: int, export_dir):
    """List the swipes found in a recording."""
    samples, sample_rate = read_wav(input)
    try:
        found = find_swipes(samples, zcr_threshold, window_size)
    except MagstripeError as e:
        _fail(str(e))

    if not found:
        _fail("No swipes detected in the audio file.")

    if export_dir is not None:
        Path(export_dir).mkdir(parents=True, exist_ok=True)

    for i, swipe in enumerate(found):
        line = f"[{i}] {swipe.start}-{swipe.end} ({swipe.duration(sample_rate):.3f}s)"
        if export_dir is not None:
            path = Path(export_dir) / f"swipe_{i:03d}.wav"
            export_swipe(path, samples, swipe, sample_rate)
            line += f" -> {path}"
        click.echo(line)


@main.command()
@click.option(
    "-o", "--output",
    type=click.Path(),
    default="recording.wav",
    help="Output WAV file path",
)
@click.option("--seconds", type=float, default=5.0, help="Recording length (default: 5)")
@click.option(
    "-s", "--sample-rate",
    type=int,
    default=SAMPLE_RATE,
    help=f"Sample rate in Hz (default: {SAMPLE_RATE})",
)
@click.option("-d", "--device", type=int, default=None, help="Audio input device number")
@click.option("-l", "--list-devices", is_flag=True, help="List available audio input devices")
def record(output: str, seconds: float, sample_rate: int, device, list_devices: bool):
    """Record a swipe from an audio input device."""
    if list_devices:
        click.echo("Audio Input Devices:")
        click.echo("-" * 60)
        for i, name in audio_io.list_input_devices():
            click.echo(f"  [{i}] {name}")
        return

    samples = audio_io.record(seconds, sample_rate, device)
    write_wav(output, samples, sample_rate)
    click.echo(f"✓ Recorded {output}")


@main.command()
@click.argument("input", type=click.Path(exists=True))
@click.option("-d", "--device", type=int, default=None, help="Audio output device number")
def play(input: str, device):
    """Play a WAV file (e.g. into a spoofing coil)."""
    samples, sample_rate = read_wav(input)
    audio_io.play(samples, sample_rate, device)


if __name__ == "__main__":
    main()
