# solar_grabber/services/devices/smart_plug.py

from __future__ import annotations

import re

import requests

from solar_grabber.models.publish_data import PublishData
from solar_grabber.services.devices.base import SourceDevice, extract_float


# Tasmota's ``/?m=1`` fragment renders rows like
# ``{s}Active Power{m}</td><td style='text-align:left'>344</td>``
R_CURRENT_POWER = re.compile(r"Active Power[^>]*>[^>]*>([^<]*)")
R_YIELD_TODAY = re.compile(r"Energy Today[^>]*>[^>]*>([^<]*)")
R_TOTAL_YIELD = re.compile(r"Energy Total[^>]*>[^>]*>([^<]*)")


class SmartPlugSource(SourceDevice):
    """Tasmota smart plug with energy monitoring."""

    @property
    def status_url(self) -> str:
        return f"http://{self.cfg.ip}/?m=1"

    def _request(self) -> requests.Response:
        return self.session.get(self.status_url, timeout=self.timeout)

    def parse_html(self, html: str) -> PublishData:
        current_power = extract_float(R_CURRENT_POWER, html, "currentPower")
        yield_today = extract_float(R_YIELD_TODAY, html, "yieldToday")
        total_yield = extract_float(R_TOTAL_YIELD, html, "totalYield")

        # An idle plug legitimately reads zero everywhere; publish it as is.
        data = PublishData()
        self._identity_tags(data)
        data.field("currentPower", current_power)
        data.field("yieldToday", yield_today)
        data.field("totalYield", total_yield)
        return data
