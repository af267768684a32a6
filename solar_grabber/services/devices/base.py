# solar_grabber/services/devices/base.py

from __future__ import annotations

import math
import re
from typing import Optional

import requests

from solar_grabber.models.publish_data import PublishData


# ============================================================================
# Errors
# ============================================================================

class SourceError(Exception):
    """A device could not produce a reading this cycle."""


class DeviceUnreachableError(SourceError):
    pass


class ScrapeError(SourceError):
    pass


class FieldNotFoundError(ScrapeError):
    def __init__(self, field_name: str):
        super().__init__(f"Could not find '{field_name}' in status page")
        self.field_name = field_name


class FieldParseError(ScrapeError):
    def __init__(self, field_name: str, raw: str):
        super().__init__(f"Could not parse '{field_name}' from {raw!r}")
        self.field_name = field_name
        self.raw = raw


class StaleReadingError(ScrapeError):
    pass


# ============================================================================
# Extraction helpers
# ============================================================================

def extract_text(pattern: re.Pattern, html: str, field_name: str) -> str:
    match = pattern.search(html)
    if match is None:
        raise FieldNotFoundError(field_name)
    return match.group(1).strip()


R_DECIMAL = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?")


def extract_float(pattern: re.Pattern, html: str, field_name: str) -> float:
    raw = extract_text(pattern, html, field_name)
    # float() also takes "1_000", "nan" and non-ASCII digits
    if not R_DECIMAL.fullmatch(raw):
        raise FieldParseError(field_name, raw)
    try:
        value = float(raw)
    except ValueError:
        raise FieldParseError(field_name, raw) from None
    if not math.isfinite(value):
        raise FieldParseError(field_name, raw)
    return value


# ============================================================================
# Source device
# ============================================================================

class SourceDevice:
    """
    One pollable device.

    Subclasses provide the status page request (``_request``) and the
    page scraping (``parse_html``); ``poll`` ties the two together.
    """

    def __init__(self, cfg, log, session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    def identify(self) -> str:
        return self.cfg.device_name

    # ------------------------------------------------------------------
    def _request(self) -> requests.Response:
        raise NotImplementedError

    def parse_html(self, html: str) -> PublishData:
        raise NotImplementedError

    def fetch(self) -> str:
        try:
            resp = self._request()
            resp.raise_for_status()
        except (requests.RequestException, UnicodeError) as exc:
            raise DeviceUnreachableError(f"Request to '{self.identify()}' failed: {exc}") from exc
        return resp.text

    def poll(self) -> PublishData:
        html = self.fetch()
        self.log.debug("%s: received %d characters", self.identify(), len(html))
        return self.parse_html(html)

    # ------------------------------------------------------------------
    def _identity_tags(self, data: PublishData) -> None:
        data.tag("deviceName", self.cfg.device_name)
        if self.cfg.device_location:
            data.tag("deviceLocation", self.cfg.device_location)
