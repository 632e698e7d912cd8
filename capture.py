"""
Screen capture backends.

Every backend returns a PixelBuffer already downscaled to the processing
width and raises CaptureUnavailable when no frame could be produced.
"""

import os
import subprocess

from PIL import Image, ImageGrab

import config
from errors import CaptureUnavailable
from image_processor import PixelBuffer


def downscale(image, width: int):
    """Resize keeping aspect ratio to avoid distortion."""
    sw, sh = image.size
    if sw <= 0 or sh <= 0:
        raise CaptureUnavailable(f"Captured image has no pixels ({sw}x{sh})")
    target_h = max(1, int(width * (sh / sw)))
    if image.mode != "RGB":
        image = image.convert("RGB")
    return image.resize((width, target_h))


class CaptureProvider:
    """Base class, subclasses implement grab()."""

    def __init__(self, resize_width: int = config.RESIZE_WIDTH):
        self.resize_width = resize_width

    def grab(self):
        raise NotImplementedError

    def capture(self) -> PixelBuffer:
        image = self.grab()
        if image is None:
            raise CaptureUnavailable("Capture returned no image")
        return PixelBuffer.from_image(downscale(image, self.resize_width))

    def close(self):
        pass


class ImageGrabCapture(CaptureProvider):
    """Pillow ImageGrab snapshot of the screen (or a bbox within it)."""

    def __init__(self, resize_width: int = config.RESIZE_WIDTH, bbox=None):
        super().__init__(resize_width)
        self.bbox = bbox

    def grab(self):
        try:
            return ImageGrab.grab(bbox=self.bbox)
        except OSError as e:
            raise CaptureUnavailable(f"Screen grab failed: {e}") from e


class CommandCapture(CaptureProvider):
    """Runs an external capture utility that writes an image file, then decodes it."""

    def __init__(
        self,
        resize_width: int = config.RESIZE_WIDTH,
        command=None,
        output_path: str = config.CAPTURE_FILE,
        timeout: float = 5.0,
    ):
        super().__init__(resize_width)
        self.command = list(command or config.CAPTURE_COMMAND)
        self.output_path = output_path
        self.timeout = timeout

    def grab(self):
        try:
            subprocess.run(
                self.command + [self.output_path],
                check=True,
                capture_output=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise CaptureUnavailable(f"Capture command not found: {self.command[0]}") from e
        except subprocess.CalledProcessError as e:
            raise CaptureUnavailable(
                f"Capture command failed with exit code {e.returncode}"
            ) from e
        except subprocess.TimeoutExpired as e:
            raise CaptureUnavailable("Capture command timed out") from e

        try:
            with Image.open(self.output_path) as img:
                img.load()
                return img.convert("RGB")
        except OSError as e:
            raise CaptureUnavailable(f"Could not decode {self.output_path}: {e}") from e

    def close(self):
        if os.path.exists(self.output_path):
            os.remove(self.output_path)


def create_capture(settings) -> CaptureProvider:
    if settings.capture_backend == "grab":
        return ImageGrabCapture(settings.resize_width)
    if settings.capture_backend == "command":
        return CommandCapture(
            settings.resize_width,
            command=settings.capture_command,
            output_path=settings.capture_file,
        )
    raise ValueError(f"Unknown capture backend: {settings.capture_backend!r}")
