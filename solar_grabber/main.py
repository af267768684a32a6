# solar_grabber/main.py

from datetime import datetime, timezone
import logging
import sys

import requests

from .cli import build_parser
from .config import ConfigError, resolve_config
from .logging import ConsoleLog, StructuredLog, RunLogEntry, SourceOutcome, PublishOutcome

from .services.devices.base import SourceError
from .services.influx_target import InfluxTarget, PublishError
from .services.source_registry import create_sources


def publish_to_targets(device_id, data, targets, entry: RunLogEntry, log, dry_run=False, out=None) -> None:
    for target in targets:
        if dry_run:
            try:
                line = target.encode(data)
            except PublishError as exc:
                log.warning("Failed to encode data from '%s': %s", device_id, exc)
                entry.publishes.append(PublishOutcome(device_id, target.identify(), False, str(exc)))
                continue
            print(line, file=out or sys.stdout)
            entry.publishes.append(PublishOutcome(device_id, target.identify(), True))
            continue

        try:
            target.publish(data)
        except PublishError as exc:
            log.warning("Failed to publish data to '%s': %s", target.identify(), exc)
            entry.publishes.append(PublishOutcome(device_id, target.identify(), False, str(exc)))
        else:
            log.debug("Published '%s' to '%s'", device_id, target.identify())
            entry.publishes.append(PublishOutcome(device_id, target.identify(), True))


def run_once(sources, targets, log, dry_run=False, out=None) -> RunLogEntry:
    """Poll every source once, in order, and hand each reading to every target."""
    entry = RunLogEntry(timestamp=datetime.now(timezone.utc).isoformat())

    for src in sources:
        device_id = src.identify()
        try:
            data = src.poll()
        except SourceError as exc:
            log.warning("Failed to receive data from '%s': %s", device_id, exc)
            entry.sources.append(SourceOutcome(device_id, False, error=str(exc)))
            continue

        log.info("Polled '%s': %s", device_id, data.as_dict()["fields"])
        entry.sources.append(SourceOutcome(device_id, True, data=data.as_dict()))
        publish_to_targets(device_id, data, targets, entry, log, dry_run=dry_run, out=out)

    return entry


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_cfg = resolve_config(args.config, args.sources, args.targets)
    except ConfigError as exc:
        print(f"solar-grabber: configuration error: {exc}", file=sys.stderr)
        return 2

    console_logger = ConsoleLog(
        level="DEBUG" if args.debug else app_cfg.logging.console_level,
        quiet=args.quiet or app_cfg.logging.console_quiet,
        debug_modules=app_cfg.logging.debug_modules,
    )
    log = console_logger.setup()
    structured_logger = StructuredLog(
        app_cfg.logging.structured_path,
        app_cfg.logging.structured_enabled,
    )
    if args.debug:
        logging.getLogger("urllib3").setLevel(logging.INFO)

    timeout = app_cfg.http.timeout
    with requests.Session() as session:
        sources = create_sources(app_cfg.sources, log, session=session, timeout=timeout)
        targets = [
            InfluxTarget(cfg, log, session=session, timeout=timeout)
            for cfg in app_cfg.targets
        ]
        entry = run_once(sources, targets, log, dry_run=args.dry_run)

    log.info(
        "Run complete: %d/%d sources polled, %d publish failures",
        len(entry.sources) - entry.failed_sources,
        len(entry.sources),
        entry.failed_publishes,
    )
    structured_logger.write(entry)
    return 0


if __name__ == "__main__":
    sys.exit(main())
