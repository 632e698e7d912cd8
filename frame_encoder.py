"""
Wire frame for the LED controller:

    byte 0          START_BYTE (255)
    bytes 1..3N     N colors as R, G, B in zone order
    byte 3N + 1     END_BYTE (254)

The firmware reads a fixed number of bytes per frame. The sentinels are only
an integrity check, data bytes may take any value.
"""

from typing import List, Tuple

import numpy as np

import config
from errors import GeometryInvariantViolation


def frame_size(total_leds: int) -> int:
    return 1 + total_leds * 3 + 1


def encode_frame(colors, total_leds: int) -> bytes:
    """Serialize exactly `total_leds` colors into one frame."""
    colors = np.asarray(colors)
    if colors.size == 0:
        colors = colors.reshape(0, 3)

    if colors.ndim != 2 or colors.shape[1] != 3:
        raise GeometryInvariantViolation(
            f"Expected (N, 3) colors, got shape {colors.shape}"
        )
    if colors.shape[0] != total_leds:
        raise GeometryInvariantViolation(
            f"Got {colors.shape[0]} colors for {total_leds} LEDs"
        )
    if colors.dtype != np.uint8:
        if colors.size and (colors.min() < 0 or colors.max() > 255):
            raise ValueError("Color channels must be within 0..255")
        colors = colors.astype(np.uint8)

    frame = bytearray(frame_size(total_leds))
    frame[0] = config.START_BYTE
    frame[1:-1] = colors.tobytes()
    frame[-1] = config.END_BYTE
    return bytes(frame)


def decode_frame(frame: bytes, total_leds: int) -> List[Tuple[int, int, int]]:
    """Parse a frame back into per-LED colors."""
    expected = frame_size(total_leds)
    if len(frame) != expected:
        raise ValueError(f"Frame is {len(frame)} bytes, expected {expected}")
    if frame[0] != config.START_BYTE or frame[-1] != config.END_BYTE:
        raise ValueError("Frame sentinels missing")

    data = frame[1:-1]
    return [
        (data[i], data[i + 1], data[i + 2]) for i in range(0, len(data), 3)
    ]
