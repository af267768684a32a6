# solar_grabber/cli.py
import argparse
import os

from solar_grabber.config import DEFAULT_CONFIG_PATH


def build_parser(environ=None):
    env = os.environ if environ is None else environ

    parser = argparse.ArgumentParser(
        prog="solar-grabber",
        description="Scrape solar inverters and smart plugs and publish readings to InfluxDB"
    )

    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="Path to configuration file (used when --sources/--targets are not given)"
    )

    # JSON channel; both or neither must be supplied
    parser.add_argument(
        "--sources",
        default=env.get("SG_SOURCES"),
        help="JSON array of source devices (env: SG_SOURCES)"
    )

    parser.add_argument(
        "--targets",
        default=env.get("SG_INFLUXDBS"),
        help="JSON array of InfluxDB targets (env: SG_INFLUXDBS)"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging"
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress stdout logging (cron-friendly)"
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print line protocol to stdout instead of publishing"
    )

    return parser
