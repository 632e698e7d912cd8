"""
Ambilight Simulator

Shows the LED strip in a window instead of driving real hardware. The
SimulatorTransport accepts the same frames as the serial transport, decodes
them and draws every LED around a screen outline in wiring order.

Run with:  edge-ambilight --simulate
"""

import threading
import time
import tkinter as tk

import ttkbootstrap as ttk

from errors import TransportError
from frame_encoder import decode_frame
from zones import build_zones

WINDOW_SIZE = (900, 600)
MARGIN = 40
LED_SIZE = 5


def led_positions(layout, width, height, margin=MARGIN):
    """Canvas (x, y) of every LED in emission order, just outside the screen outline."""
    inner_w = max(1, int(width - 2 * margin))
    inner_h = max(1, int(height - 2 * margin))
    half = margin / 2

    locations = []
    for zone in build_zones(layout, inner_w, inner_h):
        cx = margin + (zone.x1 + zone.x2) / 2
        cy = margin + (zone.y1 + zone.y2) / 2
        if zone.edge == "top":
            locations.append((cx, half))
        elif zone.edge == "right":
            locations.append((width - half, cy))
        elif zone.edge == "bottom":
            locations.append((cx, height - half))
        else:
            locations.append((half, cy))
    return locations


def rgb_to_hex(rgb):
    return f"#{rgb[0]:02x}{rgb[1]:02x}{rgb[2]:02x}"


class SimulatorTransport:
    """Transport that keeps the last decoded frame for the simulator window."""

    def __init__(self, layout):
        self.layout = layout
        self.led_colors = [(0, 0, 0)] * layout.total_leds
        self.frame_count = 0
        self.closed = False
        self._lock = threading.Lock()

    def ready(self) -> bool:
        return not self.closed

    def write(self, frame: bytes) -> int:
        if self.closed:
            raise TransportError("Simulator closed")
        try:
            colors = decode_frame(frame, self.layout.total_leds)
        except ValueError as e:
            raise TransportError(f"Simulator rejected frame: {e}") from e

        with self._lock:
            self.led_colors = colors
            self.frame_count += 1

        if self.frame_count % 60 == 0:
            sample = [f"LED{i}:{c}" for i, c in enumerate(colors[:3])]
            print(f"[Simulator Frame {self.frame_count}] Received: {', '.join(sample)}...")
        return len(frame)

    def snapshot(self):
        with self._lock:
            return list(self.led_colors)

    def close(self):
        self.closed = True


class LEDSimulator:
    def __init__(self, transport, on_close=None, themename="darkly"):
        self.transport = transport
        self.layout = transport.layout
        self.on_close = on_close
        self._closed = False

        self.root = ttk.Window(themename=themename)
        self.root.title(f"Ambilight Simulator ({self.layout.total_leds} LEDs)")
        self.root.geometry(f"{WINDOW_SIZE[0]}x{WINDOW_SIZE[1]}")
        self.root.protocol("WM_DELETE_WINDOW", self.close)

        self.status = ttk.Label(self.root, text="Waiting for frames...")
        self.status.pack(pady=10)

        self.canvas = tk.Canvas(self.root, bg="#1a1a1a", highlightthickness=0)
        self.canvas.pack(fill="both", expand=True, padx=20, pady=10)

        info = ttk.Label(self.root, text=f"LED Order: {self.layout.describe()}")
        info.pack(pady=5)

        self._last_frame = -1
        self._started = time.monotonic()
        self.root.after(100, self.draw_leds)

    def draw_leds(self):
        w = self.canvas.winfo_width()
        h = self.canvas.winfo_height()

        if w < 10 or h < 10:
            self.root.after(100, self.draw_leds)
            return

        frame_count = self.transport.frame_count
        if frame_count != self._last_frame:
            self._last_frame = frame_count
            self.canvas.delete("all")

            # Screen outline
            self.canvas.create_rectangle(
                MARGIN, MARGIN, w - MARGIN, h - MARGIN, outline="gray", width=2, dash=(5, 5)
            )

            colors = self.transport.snapshot()
            for i, (x, y) in enumerate(led_positions(self.layout, w, h)):
                color = rgb_to_hex(colors[i])
                self.canvas.create_oval(
                    x - LED_SIZE,
                    y - LED_SIZE,
                    x + LED_SIZE,
                    y + LED_SIZE,
                    fill=color,
                    outline="#444444",
                    width=1,
                )

            elapsed = max(time.monotonic() - self._started, 1e-6)
            self.status.config(
                text=f"Frame {frame_count} | avg {frame_count / elapsed:.1f} FPS"
            )

        self.root.after(33, self.draw_leds)

    def close(self):
        if self._closed:
            return
        self._closed = True
        if self.on_close:
            self.on_close()
        self.transport.close()
        self.root.destroy()

    def run(self):
        self.root.mainloop()
