from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

import config
from zones import Zone


@dataclass
class PixelBuffer:
    """Downscaled screen raster, (height, width, channels) uint8."""

    pixels: np.ndarray

    def __post_init__(self):
        if self.pixels.ndim != 3 or self.pixels.shape[2] not in (3, 4):
            raise ValueError(
                f"Expected (height, width, 3|4) pixels, got shape {self.pixels.shape}"
            )
        if self.pixels.dtype != np.uint8:
            self.pixels = self.pixels.astype(np.uint8)

    @classmethod
    def from_bytes(cls, data, width: int, height: int, channels: int = 3):
        """Wrap packed row-major bytes."""
        expected = width * height * channels
        if len(data) != expected:
            raise ValueError(
                f"Pixel data is {len(data)} bytes, expected {expected} "
                f"for {width}x{height}x{channels}"
            )
        pixels = np.frombuffer(bytes(data), dtype=np.uint8)
        return cls(pixels.reshape(height, width, channels))

    @classmethod
    def from_image(cls, image):
        """Wrap a PIL image (converted to RGB)."""
        if image.mode != "RGB":
            image = image.convert("RGB")
        return cls(np.asarray(image, dtype=np.uint8))

    @classmethod
    def solid(cls, width: int, height: int, rgb, channels: int = 3):
        pixels = np.zeros((height, width, channels), dtype=np.uint8)
        pixels[:, :, :3] = rgb
        if channels == 4:
            pixels[:, :, 3] = 255
        return cls(pixels)

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def channels(self) -> int:
        return self.pixels.shape[2]


def _round_half_up(values):
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)


class ColorCorrection:
    """
    Channel gain + gamma lookup, computed once.

    corrected = gamma_lut[min(255, round(raw * gain))]
    gamma_lut[v] = round((v / 255) ** (1 / gamma) * 255)
    """

    def __init__(self, gains=config.COLOR_CORRECTION, gamma: float = config.GAMMA):
        if len(gains) != 3:
            raise ValueError("Need exactly 3 channel gains")
        if gamma <= 0:
            raise ValueError("Gamma must be > 0")

        self.gains = tuple(float(g) for g in gains)
        self.gamma = float(gamma)

        levels = np.arange(256, dtype=np.float64)
        gamma_lut = _round_half_up(np.power(levels / 255.0, 1.0 / self.gamma) * 255.0)
        self.gamma_lut = np.clip(gamma_lut, 0, 255).astype(np.uint8)

        self.lut = np.empty((3, 256), dtype=np.uint8)
        for channel, gain in enumerate(self.gains):
            scaled = np.clip(_round_half_up(levels * gain), 0, 255).astype(np.intp)
            self.lut[channel] = self.gamma_lut[scaled]

    def apply(self, r: int, g: int, b: int) -> Tuple[int, int, int]:
        return int(self.lut[0, r]), int(self.lut[1, g]), int(self.lut[2, b])

    def apply_array(self, colors: np.ndarray) -> np.ndarray:
        """Correct an (N, 3) array of raw colors."""
        colors = np.asarray(colors, dtype=np.intp)
        out = np.empty(colors.shape, dtype=np.uint8)
        for channel in range(3):
            out[:, channel] = self.lut[channel][colors[:, channel]]
        return out


def average_zone(buffer: PixelBuffer, zone: Zone, step: int = config.SAMPLE_STEP):
    """Mean raw color of a zone, sampling every `step` rows and columns."""
    # Clip against the real buffer so a stale zone never reads out of bounds
    x1 = max(0, min(zone.x1, buffer.width))
    x2 = max(0, min(zone.x2, buffer.width))
    y1 = max(0, min(zone.y1, buffer.height))
    y2 = max(0, min(zone.y2, buffer.height))

    region = buffer.pixels[y1:y2:step, x1:x2:step, :3]
    count = region.shape[0] * region.shape[1]
    if count == 0:
        return 0, 0, 0

    sums = region.sum(axis=(0, 1), dtype=np.int64)
    r, g, b = (int(s) // count for s in sums)
    return r, g, b


def average_color(
    buffer: PixelBuffer,
    zone: Zone,
    correction: Optional[ColorCorrection] = None,
    step: int = config.SAMPLE_STEP,
):
    """Zone average passed through the correction table."""
    r, g, b = average_zone(buffer, zone, step)
    if correction is None:
        return r, g, b
    return correction.apply(r, g, b)


def process_edge_zones(
    buffer: PixelBuffer,
    zones: Sequence[Zone],
    correction: Optional[ColorCorrection] = None,
    step: int = config.SAMPLE_STEP,
) -> np.ndarray:
    """Reduce every zone to one color, returned as (N, 3) uint8 in zone order."""
    raw = np.zeros((len(zones), 3), dtype=np.intp)
    for i, zone in enumerate(zones):
        raw[i] = average_zone(buffer, zone, step)

    if correction is None:
        return raw.astype(np.uint8)
    return correction.apply_array(raw)


def colors_as_tuples(colors: Iterable) -> list:
    return [tuple(int(c) for c in color) for color in colors]
