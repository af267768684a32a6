# solar_grabber/services/influx_target.py

from __future__ import annotations

import urllib.parse
from typing import Optional

import requests

from solar_grabber.config import InfluxTargetConfig
from solar_grabber.models.publish_data import PublishData
from solar_grabber.services.line_protocol import encode


class PublishError(Exception):
    """A reading could not be written to a backend."""


class InfluxTarget:
    """InfluxDB v2 writer that posts one line-protocol line per call."""

    WRITE_PATH = "/api/v2/write"

    def __init__(
        self,
        cfg: InfluxTargetConfig,
        log,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.cfg = cfg
        self.log = log
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    def identify(self) -> str:
        return self.cfg.influx_url

    def write_url(self) -> str:
        parsed = urllib.parse.urlsplit(self.cfg.influx_url.strip())
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise PublishError(f"Invalid InfluxDB URL: {self.cfg.influx_url!r}")
        path = parsed.path.rstrip("/") + self.WRITE_PATH
        return urllib.parse.urlunsplit((parsed.scheme, parsed.netloc, path, "", ""))

    def encode(self, data: PublishData) -> str:
        try:
            return encode(self.cfg.measurement, data)
        except ValueError as exc:
            raise PublishError(f"Cannot encode data for '{self.identify()}': {exc}") from exc

    # ------------------------------------------------------------------
    def publish(self, data: PublishData) -> None:
        url = self.write_url()
        line = self.encode(data)
        self.log.debug("Writing to %s: %s", url, line)

        try:
            resp = self.session.post(
                url,
                params={"bucket": self.cfg.bucket, "org": self.cfg.org},
                headers={
                    "Authorization": f"Token {self.cfg.token}",
                    "Content-Type": "text/plain; charset=utf-8",
                },
                data=line.encode("utf-8"),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise PublishError(f"Request to '{self.identify()}' failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            detail = (resp.text or "").strip()[:200]
            raise PublishError(
                f"'{self.identify()}' returned HTTP {resp.status_code}"
                + (f": {detail}" if detail else "")
            )
