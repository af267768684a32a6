from ipaddress import IPv4Address

import pytest

from solar_grabber.config import InverterConfig, SmartPlugConfig
from solar_grabber.logging import get_logger
from solar_grabber.services.devices.inverter import InverterSource
from solar_grabber.services.devices.smart_plug import SmartPlugSource
from solar_grabber.services.source_registry import create_source, create_sources
from solar_grabber.tests.fake_http import FakeSession


LOG = get_logger("registry-test")


def test_sources_are_built_in_configured_order():
    session = FakeSession()
    configs = [
        SmartPlugConfig(ip=IPv4Address("10.0.0.2"), device_name="plug"),
        InverterConfig(
            status_page_url="http://inv",
            user="u",
            password="p",
            device_name="inverter",
        ),
    ]

    sources = create_sources(configs, LOG, session=session, timeout=1.5)

    assert [type(s) for s in sources] == [SmartPlugSource, InverterSource]
    assert [s.identify() for s in sources] == ["plug", "inverter"]
    assert all(s.session is session and s.timeout == 1.5 for s in sources)


def test_unknown_config_type_is_rejected():
    with pytest.raises(TypeError):
        create_source(object(), LOG)
