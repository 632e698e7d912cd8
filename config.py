# ============================================================================
# CONFIGURATION
# ============================================================================

import json
from dataclasses import dataclass, field, fields, asdict

from zones import StripLayout

# LED layout (strip wiring: TOP -> RIGHT -> BOTTOM -> LEFT)
NUM_TOP = 57
NUM_RIGHT = 32
NUM_BOTTOM = 57
NUM_LEFT = 32

# Screen capture
CAPTURE_EDGE_THICKNESS = 10  # Pixels sampled inward from each edge
RESIZE_WIDTH = 320  # Processing width after downscale
SAMPLE_STEP = 2  # Sample every 2nd row and column
CAPTURE_BACKEND = "grab"  # "grab" (Pillow ImageGrab) or "command"
CAPTURE_COMMAND = ["screencapture", "-x", "-m"]
CAPTURE_FILE = "/tmp/ambilight_frame.png"

# Timing
FPS = 60
STATS_EVERY = 60  # Report FPS every N frames

# Serial
SERIAL_PORT = "/dev/tty.usbserial-1320"
BAUD_RATE = 115200
WRITE_TIMEOUT = 1.0
RESET_DELAY = 2.0  # Arduino resets when the port opens
OPEN_ATTEMPTS = 5
OPEN_BACKOFF = 0.5  # Seconds, doubled after every failed attempt
MAX_WRITE_FAILURES = 10

# Protocol
START_BYTE = 255
END_BYTE = 254

# Color correction for WS2812B (less blue)
COLOR_CORRECTION = (1.0, 0.95, 0.85)
GAMMA = 2.2
MAX_CHANNEL_GAIN = 1.2

INTEGER_OPTIONS = (
    "num_top",
    "num_right",
    "num_bottom",
    "num_left",
    "edge_thickness",
    "resize_width",
    "sample_step",
    "baud_rate",
    "stats_every",
    "open_attempts",
    "max_write_failures",
)


@dataclass
class AmbilightSettings:
    """Static configuration for one run."""

    num_top: int = NUM_TOP
    num_right: int = NUM_RIGHT
    num_bottom: int = NUM_BOTTOM
    num_left: int = NUM_LEFT
    edge_thickness: int = CAPTURE_EDGE_THICKNESS
    resize_width: int = RESIZE_WIDTH
    sample_step: int = SAMPLE_STEP
    fps: float = FPS
    serial_port: str = SERIAL_PORT
    baud_rate: int = BAUD_RATE
    color_correction: tuple = COLOR_CORRECTION
    gamma: float = GAMMA
    capture_backend: str = CAPTURE_BACKEND
    capture_command: list = field(default_factory=lambda: list(CAPTURE_COMMAND))
    capture_file: str = CAPTURE_FILE
    stats_every: int = STATS_EVERY
    write_timeout: float = WRITE_TIMEOUT
    reset_delay: float = RESET_DELAY
    open_attempts: int = OPEN_ATTEMPTS
    open_backoff: float = OPEN_BACKOFF
    max_write_failures: int = MAX_WRITE_FAILURES
    debug: bool = False

    def __post_init__(self):
        self.color_correction = tuple(float(g) for g in self.color_correction)
        self.validate()

    def validate(self):
        """Raise ValueError describing the first invalid option."""
        for name in INTEGER_OPTIONS:
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{name} must be an integer, got {value!r}")
        for name in ("num_top", "num_right", "num_bottom", "num_left"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        if self.edge_thickness <= 0:
            raise ValueError("edge_thickness must be > 0")
        if self.resize_width <= 2 * self.edge_thickness:
            raise ValueError("resize_width must be more than twice edge_thickness")
        if self.sample_step < 1:
            raise ValueError("sample_step must be >= 1")
        if self.fps <= 0:
            raise ValueError("fps must be > 0")
        if self.baud_rate <= 0:
            raise ValueError("baud_rate must be > 0")
        if len(self.color_correction) != 3:
            raise ValueError("color_correction needs exactly 3 gains (red, green, blue)")
        for gain in self.color_correction:
            if not 0.0 <= gain <= MAX_CHANNEL_GAIN:
                raise ValueError(
                    f"color_correction gains must be within 0..{MAX_CHANNEL_GAIN}"
                )
        if self.gamma <= 0:
            raise ValueError("gamma must be > 0")
        if self.capture_backend not in ("grab", "command"):
            raise ValueError(f"Unknown capture_backend: {self.capture_backend!r}")
        if self.stats_every < 1:
            raise ValueError("stats_every must be >= 1")
        if self.open_attempts < 1:
            raise ValueError("open_attempts must be >= 1")
        if self.max_write_failures < 1:
            raise ValueError("max_write_failures must be >= 1")
        if self.write_timeout <= 0 or self.open_backoff < 0 or self.reset_delay < 0:
            raise ValueError("Timeouts and delays must not be negative")

    @property
    def total_leds(self) -> int:
        return self.num_top + self.num_right + self.num_bottom + self.num_left

    @property
    def frame_size(self) -> int:
        return 1 + self.total_leds * 3 + 1

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.fps

    @property
    def layout(self) -> StripLayout:
        return StripLayout.from_settings(self)

    def to_dict(self) -> dict:
        return asdict(self)


def load_settings(path=None, **overrides) -> AmbilightSettings:
    """Build settings from defaults, an optional JSON file and explicit overrides."""
    known = {f.name for f in fields(AmbilightSettings)}
    values = {}

    if path:
        try:
            with open(path, "r") as f:
                config_data = json.load(f)
        except FileNotFoundError:
            raise ValueError(f"Config file not found: {path}")
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Failed to load config {path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ValueError(f"Config {path} must contain a JSON object")
        values.update(config_data)

    values.update({k: v for k, v in overrides.items() if v is not None})

    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown config option(s): {', '.join(unknown)}")

    try:
        return AmbilightSettings(**values)
    except TypeError as e:
        raise ValueError(f"Invalid config value: {e}") from e
