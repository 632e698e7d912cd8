import os
import sys
import threading
import time

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from config import AmbilightSettings  # noqa: E402
from image_processor import PixelBuffer  # noqa: E402
from zones import StripLayout  # noqa: E402


class FakeCapture:
    """Capture provider returning queued buffers (the last one repeats)."""

    def __init__(self, *buffers):
        self.buffers = list(buffers)
        self.calls = 0
        self.closed = False

    def capture(self):
        self.calls += 1
        item = self.buffers[0] if len(self.buffers) == 1 else self.buffers.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


class FakeTransport:
    """Records frames and the number of writes in flight at once."""

    def __init__(self, delay=0.0, fail_with=None):
        self.frames = []
        self.delay = delay
        self.fail_with = fail_with
        self.is_ready = True
        self.closed = False
        self.in_flight = 0
        self.max_in_flight = 0
        self.write_calls = 0
        self.release = None  # threading.Event that blocks write() until set
        self.entered = threading.Event()
        self._lock = threading.Lock()

    def ready(self):
        return self.is_ready and not self.closed

    def write(self, frame):
        with self._lock:
            self.write_calls += 1
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.entered.set()
            if self.release is not None:
                self.release.wait(5)
            if self.delay:
                time.sleep(self.delay)
            if self.fail_with is not None:
                raise self.fail_with
            self.frames.append(bytes(frame))
            return len(frame)
        finally:
            with self._lock:
                self.in_flight -= 1

    def close(self):
        self.closed = True


def wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()


@pytest.fixture
def layout():
    return StripLayout(top=57, right=32, bottom=57, left=32, thickness=10, resize_width=320)


@pytest.fixture
def small_layout():
    return StripLayout(top=4, right=3, bottom=4, left=3, thickness=2, resize_width=40)


@pytest.fixture
def settings():
    return AmbilightSettings(reset_delay=0.0, stats_every=1000)


@pytest.fixture
def red_buffer():
    return PixelBuffer.solid(320, 240, (255, 0, 0))


@pytest.fixture
def make_capture():
    return FakeCapture


@pytest.fixture
def transport():
    return FakeTransport()
