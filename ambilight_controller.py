"""
Ambilight pacing loop.

Each tick: capture -> average every zone -> correct -> encode -> write, then
sleep for what is left of the frame interval. At most one tick is in flight:
a tick that finds the previous one still running, or the serial output not
yet drained, is skipped instead of queued.
"""

import sys
import threading
import time

from diagnostics import FrameStats, format_sample
from effects import black_frame
from errors import (
    CaptureUnavailable,
    GeometryInvariantViolation,
    TransportError,
    TransportFailure,
)
from frame_encoder import encode_frame
from image_processor import ColorCorrection, process_edge_zones
from zones import ZoneCache

FATAL_ERRORS = (GeometryInvariantViolation, TransportFailure)
SHUTDOWN_WAIT = 1.0  # seconds to wait for an in-flight tick before closing


class AmbilightController:
    """Drives capture provider -> zones -> frame -> transport at a target FPS."""

    def __init__(self, settings, capture, transport, clock=time.monotonic):
        self.settings = settings
        self.layout = settings.layout
        self.capture = capture
        self.transport = transport
        self.clock = clock

        self.correction = ColorCorrection(settings.color_correction, settings.gamma)
        self.zone_cache = ZoneCache(self.layout)
        self.stats = FrameStats(settings.stats_every, clock=clock)

        self.consecutive_failures = 0
        self.last_colors = None
        self.error = None

        self._busy = threading.Lock()
        self._stop_event = threading.Event()
        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    # ===== Frame Building =====

    def build_frame(self, buffer) -> bytes:
        zones = self.zone_cache.get(buffer.width, buffer.height)
        colors = process_edge_zones(
            buffer, zones, self.correction, self.settings.sample_step
        )
        self.last_colors = colors
        return encode_frame(colors, self.layout.total_leds)

    # ===== Tick =====

    def tick(self) -> bool:
        """Run one pipeline pass, returns True if a frame was sent."""
        if not self._busy.acquire(blocking=False):
            self.stats.frame_skipped()
            return False

        try:
            return self._tick()
        finally:
            self._busy.release()

    def _tick(self) -> bool:
        try:
            if not self.transport.ready():
                self.stats.frame_skipped()
                return False
        except TransportError as e:
            self._write_failed(e)
            return False

        try:
            buffer = self.capture.capture()
        except CaptureUnavailable as e:
            self.stats.capture_failed()
            print(f"[Capture] Skipping frame: {e}", file=sys.stderr)
            return False

        frame = self.build_frame(buffer)

        try:
            self.transport.write(frame)
        except TransportError as e:
            self._write_failed(e)
            return False

        self.consecutive_failures = 0
        fps = self.stats.frame_sent()
        if fps is not None and self.settings.debug:
            print(f"[Frame {self.stats.frames_sent}] {format_sample(self.last_colors)}...")
        return True

    def _write_failed(self, error):
        self.consecutive_failures += 1
        self.stats.write_failed()
        print(
            f"[USB] Send error ({self.consecutive_failures}/"
            f"{self.settings.max_write_failures}): {error}",
            file=sys.stderr,
        )
        if self.consecutive_failures >= self.settings.max_write_failures:
            raise TransportFailure(
                f"{self.consecutive_failures} consecutive write failures, giving up"
            ) from error

    # ===== Loop =====

    def run(self):
        """Run until stop() is called or a fatal error occurs."""
        interval = self.settings.frame_interval
        print(f"[Ambilight] Started at {self.settings.fps:g} FPS")

        try:
            while not self._stop_event.is_set():
                start_frame = self.clock()

                try:
                    self.tick()
                except FATAL_ERRORS:
                    raise
                except Exception as e:
                    self.stats.frame_skipped()
                    print(f"[Ambilight] Frame error: {e}", file=sys.stderr)

                sleep_time = interval - (self.clock() - start_frame)
                if sleep_time > 0:
                    self._stop_event.wait(sleep_time)
        finally:
            self._shutdown()

    def start(self):
        """Run the loop on a background thread."""
        if self.is_running:
            return self._thread
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_thread, daemon=True)
        self._thread.start()
        return self._thread

    def _run_thread(self):
        try:
            self.run()
        except FATAL_ERRORS as e:
            self.error = e
            print(f"[Ambilight] Stopped: {e}", file=sys.stderr)

    def stop(self, timeout: float = 2.0):
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _shutdown(self):
        """Turn the strip off and release the transport."""
        # Wait for an in-flight tick so the clear frame never overlaps a write
        acquired = self._busy.acquire(timeout=SHUTDOWN_WAIT)
        try:
            if not acquired:
                print("[USB] Tick still running, not clearing LEDs", file=sys.stderr)
            elif self.transport.ready():
                self.transport.write(black_frame(self.layout))
        except TransportError as e:
            print(f"[USB] Could not clear LEDs: {e}", file=sys.stderr)
        finally:
            if acquired:
                self._busy.release()
            self.transport.close()
            self.capture.close()
            print(
                f"[Ambilight] Stopped after {self.stats.frames_sent} frames "
                f"({self.stats.frames_skipped} skipped)"
            )
