import sys
import time

import config


class FrameStats:
    """Frame counters with a periodic FPS report."""

    def __init__(self, report_every: int = config.STATS_EVERY, clock=time.monotonic):
        self.report_every = report_every
        self.clock = clock
        self.frames_sent = 0
        self.frames_skipped = 0
        self.capture_failures = 0
        self.write_failures = 0
        self.last_fps = None
        self.start_time = clock()
        self.last_report_time = self.start_time
        self._frames_at_report = 0

    def frame_sent(self):
        """Count a sent frame, returns the FPS when a report is due."""
        self.frames_sent += 1
        if self.frames_sent - self._frames_at_report < self.report_every:
            return None

        now = self.clock()
        elapsed = now - self.last_report_time
        frames = self.frames_sent - self._frames_at_report
        self.last_fps = frames / elapsed if elapsed > 0 else float("inf")
        total = now - self.start_time

        print(
            f"[Stats] Frame {self.frames_sent} | FPS: {self.last_fps:.1f} | "
            f"Total: {total:.1f}s | Skipped: {self.frames_skipped}"
        )
        self.last_report_time = now
        self._frames_at_report = self.frames_sent
        return self.last_fps

    def frame_skipped(self):
        self.frames_skipped += 1

    def capture_failed(self):
        self.capture_failures += 1
        self.frames_skipped += 1

    def write_failed(self):
        self.write_failures += 1
        self.frames_skipped += 1

    def snapshot(self) -> dict:
        return {
            "frames_sent": self.frames_sent,
            "frames_skipped": self.frames_skipped,
            "capture_failures": self.capture_failures,
            "write_failures": self.write_failures,
            "last_fps": self.last_fps,
            "uptime": self.clock() - self.start_time,
        }


def print_banner(settings, out=sys.stdout):
    layout = settings.layout
    print("⚡ Ambilight", file=out)
    print(f"🚀 Target FPS: {settings.fps:g}", file=out)
    print(f"📐 LED Order: {layout.describe()}", file=out)
    print(
        f"📦 Frame: {settings.frame_size} bytes ({settings.total_leds} LEDs) "
        f"-> {settings.serial_port} @ {settings.baud_rate}",
        file=out,
    )
    if settings.debug:
        r, g, b = settings.color_correction
        print(f"  • Color correction: R={r} G={g} B={b}", file=out)
        print(f"  • Gamma: {settings.gamma}", file=out)
        print(f"  • Edge thickness: {settings.edge_thickness}px", file=out)
        print(f"  • Processing width: {settings.resize_width}px", file=out)
        print(f"  • Pixel sampling: skip={settings.sample_step}", file=out)
        print(f"  • Capture backend: {settings.capture_backend}", file=out)
    print(file=out)


def format_sample(colors, count: int = 3) -> str:
    """Short 'LED0:(r,g,b), ...' preview of the first colors."""
    sample = []
    for i, color in enumerate(colors[:count]):
        r, g, b = (int(c) for c in color)
        sample.append(f"LED{i}:({r},{g},{b})")
    return ", ".join(sample)
