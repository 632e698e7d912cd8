"""
Ambilight entry point.

    edge-ambilight [PORT] [--config FILE] [--simulate] [--test-pattern]
"""

import argparse
import signal
import sys
import threading

import config
from ambilight_controller import AmbilightController
from capture import create_capture
from connection_manager import SerialTransport
from diagnostics import print_banner
from effects import black_frame, run_test_pattern
from errors import (
    AmbilightError,
    GeometryInvariantViolation,
    PortUnavailable,
    TransportFailure,
)

EXIT_OK = 0
EXIT_PORT_UNAVAILABLE = 1
EXIT_BAD_CONFIG = 2
EXIT_FATAL = 3


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="edge-ambilight",
        description="Stream screen edge colors to an LED strip over serial.",
    )
    parser.add_argument(
        "port",
        nargs="?",
        help=f"Serial device (default: {config.SERIAL_PORT})",
    )
    parser.add_argument("--config", help="JSON file with option overrides")
    parser.add_argument(
        "--backend", choices=["grab", "command"], help="Screen capture backend"
    )
    parser.add_argument("--fps", type=float, help="Target frames per second")
    parser.add_argument(
        "--simulate", action="store_true", help="Show the strip in a window instead"
    )
    parser.add_argument(
        "--test-pattern", action="store_true", help="Run the wiring test pattern"
    )
    parser.add_argument("--debug", action="store_true", help="Verbose diagnostics")
    return parser.parse_args(argv)


def install_signal_handlers(stop):
    """Stop between iterations on Ctrl+C / SIGTERM."""

    def handler(signum, frame):
        print("\n[Ambilight] Stopping...")
        stop()

    signal.signal(signal.SIGINT, handler)
    if hasattr(signal, "SIGTERM"):
        signal.signal(signal.SIGTERM, handler)


def open_transport(settings):
    transport = SerialTransport(
        settings.serial_port,
        settings.baud_rate,
        write_timeout=settings.write_timeout,
        reset_delay=settings.reset_delay,
    )
    transport.connect_with_retry(settings.open_attempts, settings.open_backoff)
    return transport


def run_pattern(settings, transport):
    stop_event = threading.Event()
    install_signal_handlers(stop_event.set)
    try:
        run_test_pattern(transport, settings.layout, settings.fps, stop_event)
        if transport.ready():
            transport.write(black_frame(settings.layout))
    finally:
        transport.close()


def run_simulator(settings, test_pattern=False):
    from simulator import LEDSimulator, SimulatorTransport

    transport = SimulatorTransport(settings.layout)

    if test_pattern:
        stop_event = threading.Event()
        worker = threading.Thread(
            target=run_test_pattern,
            args=(transport, settings.layout, settings.fps, stop_event),
            daemon=True,
        )
        window = LEDSimulator(transport, on_close=stop_event.set)
        install_signal_handlers(window.close)
        worker.start()
        window.run()
        return None

    controller = AmbilightController(settings, create_capture(settings), transport)
    window = LEDSimulator(transport, on_close=controller.stop)
    install_signal_handlers(window.close)
    controller.start()
    window.run()
    controller.stop()
    return controller.error


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = config.load_settings(
            args.config,
            serial_port=args.port,
            capture_backend=args.backend,
            fps=args.fps,
            debug=True if args.debug else None,
        )
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}", file=sys.stderr)
        return EXIT_BAD_CONFIG

    print_banner(settings)

    try:
        if args.simulate:
            error = run_simulator(settings, args.test_pattern)
            if error is not None:
                raise error
            return EXIT_OK

        transport = open_transport(settings)

        if args.test_pattern:
            run_pattern(settings, transport)
            return EXIT_OK

        controller = AmbilightController(settings, create_capture(settings), transport)
        install_signal_handlers(controller.stop)
        controller.run()

    except PortUnavailable as e:
        print(f"❌ Serial port unavailable: {e}", file=sys.stderr)
        return EXIT_PORT_UNAVAILABLE
    except (GeometryInvariantViolation, TransportFailure) as e:
        print(f"❌ Ambilight stopped: {e}", file=sys.stderr)
        return EXIT_FATAL
    except AmbilightError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FATAL

    print("❌ Ambilight stopped")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
