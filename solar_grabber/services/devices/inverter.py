# solar_grabber/services/devices/inverter.py

from __future__ import annotations

import re

import requests

from solar_grabber.models.publish_data import PublishData
from solar_grabber.services.devices.base import (
    SourceDevice,
    StaleReadingError,
    extract_float,
    extract_text,
)


# The status page assigns its readings to JS variables in a <script> block,
# e.g. ``var webdata_now_p = "998";``
R_DEVICE_SN = re.compile(r'var cover_mid\s*=\s*"?([^;"]+)\s*"?;')
R_CURRENT_POWER = re.compile(r'var webdata_now_p\s*=\s*"?([^;"]+)\s*"?;')
R_YIELD_TODAY = re.compile(r'var webdata_today_e\s*=\s*"?([^;"]+)\s*"?;')
R_TOTAL_YIELD = re.compile(r'var webdata_total_e\s*=\s*"?([^;"]+)\s*"?;')


class InverterSource(SourceDevice):
    """Micro-inverter with a password protected status page."""

    def _request(self) -> requests.Response:
        return self.session.get(
            self.cfg.status_page_url,
            # UTF-8 credentials; requests would otherwise encode str as latin-1
            auth=(self.cfg.user.encode("utf-8"), self.cfg.password.encode("utf-8")),
            timeout=self.timeout,
        )

    def parse_html(self, html: str) -> PublishData:
        device_sn = extract_text(R_DEVICE_SN, html, "device")
        current_power = extract_float(R_CURRENT_POWER, html, "currentPower")
        yield_today = extract_float(R_YIELD_TODAY, html, "yieldToday")
        total_yield = extract_float(R_TOTAL_YIELD, html, "totalYield")

        # The inverter reports all zeros while booting or asleep.
        if current_power == 0.0 and yield_today == 0.0 and total_yield == 0.0:
            raise StaleReadingError(
                f"Filtering out device '{device_sn}' data (all values are zero)."
            )

        data = PublishData()
        self._identity_tags(data)
        data.tag("device", device_sn)
        data.field("currentPower", current_power)
        data.field("yieldToday", yield_today)
        data.field("totalYield", total_yield)
        return data
