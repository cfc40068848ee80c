#!/usr/bin/env python3
"""Main entry point for the vehicle locator.

Feeds recorded or synthetic location/sensor events through the
tracking engine and prints one JSON status line per location fix to
stdout, optionally recording the events for later replay. With
--serve, runs the HTTP API instead.
"""

import argparse
import json
import logging
import signal
import sys
from typing import Optional

from .core import Config, load_config
from .core.errors import ConfigError, NoFixError, PersistenceError
from .core.types import LocationEvent
from .communication import EventChannel, FeedError, MockFeed, ReplayFeed, event_to_record
from .presentation import render_status
from .tracking import LocatorEngine

logger = logging.getLogger(__name__)

SHUTDOWN_REQUESTED = False


def signal_handler(signum, frame):
    """Handle shutdown signals gracefully."""
    global SHUTDOWN_REQUESTED
    SHUTDOWN_REQUESTED = True
    logger.info("Shutdown requested")


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Args:
        verbose: If True, set DEBUG level; otherwise INFO.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def run_feed(
    engine: LocatorEngine,
    config: Config,
    events,
    mark_after: Optional[int] = None,
    out=None,
    record=None,
) -> int:
    """Push events through the channel and report once per fix.

    A fix is reported after the sensor samples that follow it, so each
    status line carries the heading measured at that position.

    Args:
        engine: Started engine.
        config: System configuration.
        events: Iterable of LocationEvent/SensorEvent.
        mark_after: Mark the current position after this many fixes.
        out: Stream receiving JSON status lines.
        record: Optional stream receiving every event as a JSON line,
            readable again with --replay.

    Returns:
        Number of location fixes processed.
    """
    out = out if out is not None else sys.stdout
    channel = EventChannel(engine, config)
    fixes = 0
    unreported = False

    def report():
        print(json.dumps(render_status(engine.snapshot(), config.display)), file=out, flush=True)

    for event in events:
        if SHUTDOWN_REQUESTED:
            break

        is_fix = isinstance(event, LocationEvent)
        if is_fix and unreported:
            report()

        channel.publish(event)
        channel.dispatch_pending()
        if record is not None:
            record.write(json.dumps(event_to_record(event)) + "\n")

        if not is_fix:
            continue

        fixes += 1
        unreported = True
        if mark_after is not None and fixes == mark_after:
            try:
                engine.mark()
            except NoFixError as e:
                logger.warning("Cannot mark: %s", e)

    if unreported:
        report()

    stats = channel.stats
    logger.info(
        "Events: %d dispatched, %d rejected, %d dropped",
        stats.dispatched, stats.failed, stats.dropped
    )
    return fixes


def serve(engine: LocatorEngine, config: Config) -> None:
    """Run the HTTP API until interrupted.

    SIGINT and SIGTERM both raise KeyboardInterrupt so the caller can
    save state before exiting.
    """
    from .web_server import create_app

    signal.signal(signal.SIGINT, signal.default_int_handler)
    signal.signal(signal.SIGTERM, signal.default_int_handler)

    app = create_app(engine, config)
    logger.info("Serving on http://%s:%d", config.web.host, config.web.port)
    app.run(host=config.web.host, port=config.web.port)


def main(argv=None) -> int:
    """Application entry point.

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(
        description="Track distance and relative bearing to a marked position"
    )
    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help="Path to configuration file",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--replay",
        type=str,
        default=None,
        help="JSON-lines recording of location and sensor events",
    )
    source.add_argument(
        "--mock",
        action="store_true",
        help="Use a synthetic walking observer",
    )
    source.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP API for the display layer",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=20,
        help="Number of mock location fixes (default: 20)",
    )
    parser.add_argument(
        "--mark-after",
        type=int,
        default=None,
        help="Mark the current position after N fixes",
    )
    parser.add_argument(
        "--record",
        type=str,
        default=None,
        help="Write every event to this JSON-lines file for later --replay",
    )
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose)

    if args.serve and args.record:
        parser.error("--record only applies to --mock and --replay")

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    record = None
    if args.record:
        try:
            record = open(args.record, "w", encoding="utf-8")
        except OSError as e:
            logger.error("Cannot open recording file: %s", e)
            return 1

    previous_handlers = {
        sig: signal.getsignal(sig) for sig in (signal.SIGINT, signal.SIGTERM)
    }

    engine = LocatorEngine(config)
    engine.start()

    try:
        if args.serve:
            serve(engine, config)
        else:
            signal.signal(signal.SIGINT, signal_handler)
            signal.signal(signal.SIGTERM, signal_handler)
            if args.replay:
                events = ReplayFeed(args.replay)
            else:
                events = MockFeed(config, noise=0.05, seed=0).events(args.steps)
            run_feed(engine, config, events, args.mark_after, record=record)

    except FileNotFoundError as e:
        logger.error("Recording not found: %s", e)
        return 1

    except FeedError as e:
        logger.error("Recording error: %s", e)
        return 1

    except KeyboardInterrupt:
        logger.info("Interrupted by user")

    finally:
        for sig, handler in previous_handlers.items():
            signal.signal(sig, handler)
        if record is not None:
            record.close()
        try:
            engine.suspend()
        except PersistenceError as e:
            logger.error("Failed to save state: %s", e)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
