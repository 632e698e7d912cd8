import time

import serial
import serial.tools.list_ports

import config
from errors import PortUnavailable, TransportError


def list_ports():
    """Serial devices pyserial can see."""
    return [port.device for port in serial.tools.list_ports.comports()]


class SerialTransport:
    """Write-only USB serial link to the LED controller (8-N-1, no flow control)."""

    def __init__(
        self,
        port: str = config.SERIAL_PORT,
        baud: int = config.BAUD_RATE,
        write_timeout: float = config.WRITE_TIMEOUT,
        reset_delay: float = config.RESET_DELAY,
    ):
        self.port = port
        self.baud = baud
        self.write_timeout = write_timeout
        self.reset_delay = reset_delay
        self.serial_port = None
        self.bytes_sent = 0

    @property
    def connected(self) -> bool:
        return self.serial_port is not None and self.serial_port.is_open

    def connect(self):
        """Open the port, raises PortUnavailable."""
        try:
            self.serial_port = serial.Serial(
                self.port,
                self.baud,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
                timeout=0,
                write_timeout=self.write_timeout,
            )
        except (serial.SerialException, OSError, ValueError) as e:
            self.serial_port = None
            available = ", ".join(list_ports()) or "none"
            raise PortUnavailable(
                f"Cannot open {self.port}: {e} (available ports: {available})"
            ) from e

        try:
            if self.reset_delay:
                time.sleep(self.reset_delay)  # Wait for Arduino reset
            self.serial_port.reset_input_buffer()
        except (serial.SerialException, OSError) as e:
            self.close()
            raise PortUnavailable(f"{self.port} dropped during reset: {e}") from e
        print(f"[USB] Serial port opened: {self.port} @ {self.baud} baud")

    def connect_with_retry(
        self,
        attempts: int = config.OPEN_ATTEMPTS,
        backoff: float = config.OPEN_BACKOFF,
        sleep=time.sleep,
    ):
        """Open the port, retrying with doubling backoff before giving up."""
        delay = backoff
        for attempt in range(1, attempts + 1):
            try:
                self.connect()
                return
            except PortUnavailable as e:
                print(f"[USB] Open attempt {attempt}/{attempts} failed: {e}")
                if attempt == attempts:
                    raise
                sleep(delay)
                delay *= 2

    def ready(self) -> bool:
        """True when the previous frame has left the output buffer."""
        if not self.connected:
            return False
        try:
            return self.serial_port.out_waiting == 0
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Serial port lost: {e}") from e

    def write(self, frame: bytes) -> int:
        if not self.connected:
            raise TransportError("Serial port is not open")
        try:
            written = self.serial_port.write(frame)
        except serial.SerialTimeoutException as e:
            raise TransportError(f"Write timed out after {self.write_timeout}s") from e
        except (serial.SerialException, OSError) as e:
            raise TransportError(f"Write failed: {e}") from e

        if written is None or written != len(frame):
            raise TransportError(f"Short write: {written} of {len(frame)} bytes")
        self.bytes_sent += written
        return written

    def close(self):
        if self.serial_port is not None:
            try:
                self.serial_port.close()
            finally:
                self.serial_port = None
                print(f"[USB] Serial port closed: {self.port}")
