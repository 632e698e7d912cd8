"""
Generated LED frames that do not come from the screen.

The edge test pattern checks the physical wiring: each edge gets its own dim
color and a bright marker runs through the LEDs in emission order, so it
must travel clockwise around the screen starting at the top-left corner.
"""

import sys
import time

import numpy as np

import config
from errors import TransportError, TransportFailure
from frame_encoder import encode_frame

EDGE_COLORS = {
    "top": (64, 0, 0),  # Dim red
    "right": (0, 64, 0),  # Dim green
    "bottom": (0, 0, 64),  # Dim blue
    "left": (48, 48, 48),  # Dim white
}
MARKER_COLOR = (255, 255, 255)
MARKER_LENGTH = 3


def static_colors(num_leds, r, g, b):
    """Generate a solid color for all LEDs as an (N, 3) array."""
    colors = np.zeros((num_leds, 3), dtype=np.uint8)
    colors[:] = (r, g, b)
    return colors


def black_frame(layout) -> bytes:
    """Encoded frame with every LED off."""
    return encode_frame(static_colors(layout.total_leds, 0, 0, 0), layout.total_leds)


def edge_test_pattern(layout, phase):
    """
    Per-edge colors plus a moving marker.
    Phase: 0.0 to 1.0 is one lap around the strip.
    """
    edges = (
        ("top", layout.top),
        ("right", layout.right),
        ("bottom", layout.bottom),
        ("left", layout.left),
    )
    colors = np.concatenate(
        [static_colors(count, *EDGE_COLORS[edge]) for edge, count in edges]
    )

    total = layout.total_leds
    head = int((phase % 1.0) * total)
    for i in range(MARKER_LENGTH):
        colors[(head - i) % total] = MARKER_COLOR

    return colors


def run_test_pattern(
    transport,
    layout,
    fps: float = config.FPS,
    stop_event=None,
    laps: int = 0,
    lap_seconds: float = 6.0,
    max_failures: int = config.MAX_WRITE_FAILURES,
):
    """
    Stream the edge test pattern until stopped (or for `laps` laps).
    Returns the number of frames sent.
    """
    delay = 1.0 / fps
    steps_per_lap = max(1, int(lap_seconds * fps))
    frames = 0
    failures = 0

    print(f"[Test] Marker runs {layout.describe()}")

    while stop_event is None or not stop_event.is_set():
        if laps and frames >= laps * steps_per_lap:
            break

        start_frame = time.monotonic()
        phase = (frames % steps_per_lap) / steps_per_lap
        frame = encode_frame(edge_test_pattern(layout, phase), layout.total_leds)

        try:
            transport.write(frame)
            failures = 0
        except TransportError as e:
            failures += 1
            print(f"[Test] Send error: {e}", file=sys.stderr)
            if failures >= max_failures:
                raise TransportFailure(f"{failures} consecutive write failures") from e
        frames += 1

        sleep_time = delay - (time.monotonic() - start_frame)
        if sleep_time > 0:
            if stop_event is not None:
                stop_event.wait(sleep_time)
            else:
                time.sleep(sleep_time)

    return frames
