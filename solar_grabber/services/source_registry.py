# solar_grabber/services/source_registry.py

from __future__ import annotations

from typing import Iterable, List, Optional

import requests

from solar_grabber.config import InverterConfig, SmartPlugConfig
from solar_grabber.services.devices.base import SourceDevice
from solar_grabber.services.devices.inverter import InverterSource
from solar_grabber.services.devices.smart_plug import SmartPlugSource


DEVICE_CLASSES: dict[type, type[SourceDevice]] = {
    InverterConfig: InverterSource,
    SmartPlugConfig: SmartPlugSource,
}


def create_source(
    cfg,
    log,
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> SourceDevice:
    device_cls = DEVICE_CLASSES.get(type(cfg))
    if device_cls is None:
        raise TypeError(f"No device implementation for {type(cfg).__name__}")
    return device_cls(cfg, log, session=session, timeout=timeout)


def create_sources(
    configs: Iterable,
    log,
    session: Optional[requests.Session] = None,
    timeout: float = 10.0,
) -> List[SourceDevice]:
    return [create_source(cfg, log, session=session, timeout=timeout) for cfg in configs]
