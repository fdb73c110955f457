"""
Connectivity Monitor CLI

Command-line entry point (`connectivity-monitor`).

Commands:
    check   One-shot check. Prints the status; exit code 0 when internet
            access is verified, 1 otherwise, 2 on configuration errors.
    watch   Run the notifier and log every transition until SIGINT/SIGTERM.
            SIGUSR1 triggers an immediate check, like an app coming back to
            the foreground.
"""

import argparse
import logging
import logging.handlers
import signal
import sys
import threading
from pathlib import Path

from config.settings import LOG_FILE, LOG_LEVEL
from connectivity.config import ConnectivityConfig
from connectivity.constants import LOG_BACKUP_COUNT, LOG_FORMAT, Framework, ValidationMode
from connectivity.controllers.connectivity_controller import Connectivity
from connectivity.event_bus import EventBus, LifecycleEvent
from connectivity.interfaces.errors import ConfigurationError

EXIT_CONNECTED = 0
EXIT_NOT_CONNECTED = 1
EXIT_CONFIG_ERROR = 2


def setup_logging(verbose: bool = False, log_file: str = LOG_FILE, log_to_file: bool = True):
    """
    Setup logging with rotation.

    Logs to the console and, optionally, to a file:
    - Daily rotation
    - Keep 7 days of logs
    """
    level = logging.DEBUG if verbose else getattr(logging, LOG_LEVEL.upper(), logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(level)

    # Console handler (stderr keeps `check` output clean on stdout)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(message)s | %(name)s"))
    logger.addHandler(console_handler)

    if not log_to_file:
        return

    file_format = logging.Formatter(LOG_FORMAT)

    try:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.TimedRotatingFileHandler(
            log_file,
            when="midnight",
            interval=1,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except (PermissionError, FileNotFoundError):
        # Fallback to local logs directory if /var/log not writable
        logs_dir = Path("logs")
        logs_dir.mkdir(exist_ok=True)

        fallback_log = logs_dir / "connectivity-monitor.log"
        logger.warning(
            f"Cannot write to {log_file}, using fallback: {fallback_log}",
        )
        file_handler = logging.handlers.TimedRotatingFileHandler(
            str(fallback_log),
            when="midnight",
            interval=1,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )

    file_handler.setLevel(level)
    file_handler.setFormatter(file_format)
    logger.addHandler(file_handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="connectivity-monitor",
        description="Detect genuine internet connectivity (captive portal aware)",
        epilog="""
Examples:
  %(prog)s check                                   # One-shot check
  %(prog)s check --url https://example.com --expected "Example Domain"
  %(prog)s watch --interval 30                     # Log every change
  %(prog)s watch --framework polling --verbose
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "command",
        choices=["check", "watch"],
        help="check once, or watch and log transitions",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML config file (default: CONNECTIVITY_CONFIG_FILE)",
    )
    parser.add_argument(
        "--url",
        action="append",
        dest="urls",
        help="Probe URL (repeat for several URLs)",
    )
    parser.add_argument("--expected", help="Expected response string or pattern")
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ValidationMode if mode != ValidationMode.CUSTOM],
        help="Response validation mode",
    )
    parser.add_argument(
        "--framework",
        choices=[framework.value for framework in Framework],
        help="Link-state backend",
    )
    parser.add_argument("--interval", type=float, help="Polling interval in seconds (watch)")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument(
        "--poll-always",
        action="store_true",
        help="Keep polling while connected (watch)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def load_config(args: argparse.Namespace) -> ConnectivityConfig:
    """Load the YAML/env configuration and apply command-line overrides"""
    config = ConnectivityConfig(args.config)

    overrides = {
        "probe_urls": args.urls,
        "expected_response": args.expected,
        "validation_mode": args.mode,
        "framework": args.framework,
        "polling_interval": args.interval,
        "request_timeout": args.timeout,
    }
    for key, value in overrides.items():
        if value is not None:
            config.set(key, value)

    if args.command == "watch":
        config.set("polling_enabled", True)
        if args.poll_always:
            config.set("poll_while_offline_only", False)

    return config


def run_check(connectivity: Connectivity, verbose: bool = False) -> int:
    """One-shot check, printed to stdout"""
    try:
        status = connectivity.check_connectivity()
    finally:
        connectivity.cleanup()

    print(f"{status.value}: {connectivity.status_description}")

    if verbose and connectivity.last_probe_result:
        for result in connectivity.last_probe_result.url_results:
            mark = "ok" if result.success else "FAIL"
            detail = result.error or f"HTTP {result.status_code}"
            print(f"  [{mark}] {result.url} ({detail}, {result.elapsed:.2f}s)")

    return EXIT_CONNECTED if connectivity.is_connected else EXIT_NOT_CONNECTED


def run_watch(connectivity: Connectivity, lifecycle_bus: EventBus) -> int:
    """Run the notifier until a shutdown signal arrives"""
    logger = logging.getLogger(__name__)
    shutdown_event = threading.Event()

    def _signal_handler(signum, _frame):
        signal_name = signal.Signals(signum).name
        logger.info(f"Received signal {signal_name}, shutting down...")
        shutdown_event.set()

    def _foreground_handler(signum, _frame):
        lifecycle_bus.publish(LifecycleEvent.DID_BECOME_ACTIVE)

    signal.signal(signal.SIGTERM, _signal_handler)
    signal.signal(signal.SIGINT, _signal_handler)
    if hasattr(signal, "SIGUSR1"):
        signal.signal(signal.SIGUSR1, _foreground_handler)

    @connectivity.when_changed
    def _log_transition(conn: Connectivity):
        logger.info(f"Connectivity: {conn.status_description} (link: {conn.link_state.value})")

    connectivity.start_notifier()
    try:
        while not shutdown_event.wait(1.0):
            pass
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
    finally:
        connectivity.cleanup()

    return EXIT_CONNECTED


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose, log_to_file=args.command == "watch")

    logger = logging.getLogger(__name__)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR

    lifecycle_bus = EventBus()
    connectivity = Connectivity.from_config(config, lifecycle_bus=lifecycle_bus)

    if args.command == "check":
        return run_check(connectivity, verbose=args.verbose)

    logger.info("=" * 60)
    logger.info("Connectivity Monitor Starting")
    logger.info("=" * 60)
    return run_watch(connectivity, lifecycle_bus)


if __name__ == "__main__":
    sys.exit(main())
