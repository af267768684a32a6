import json
from ipaddress import IPv4Address

import pytest

from solar_grabber.config import (
    AppConfig,
    Config,
    ConfigError,
    InfluxTargetConfig,
    InverterConfig,
    SmartPlugConfig,
    resolve_config,
)
from solar_grabber.main import main

SOURCES_JSON = (
    '[{"type":"Inverter","statusPageUrl":"http://inverter","user":"user","password":"password",'
    ' "device_name":"the thing", "device_location":"backyard"}]'
)
TARGETS_JSON = (
    '[{"influxUrl":"http://influx", "bucket": "bucket", "org": "org", "token": "token",'
    '"measurement":"measurement"}]'
)

CONF = """
[sources]
devices = roof, plug

[source:roof]
type = Inverter
statusPageUrl = http://192.168.1.50/status.html
user = admin
password = admin  # trailing comment
device_name = Roof inverter

[source:plug]
type = Tasmota
ip = 192.168.1.61
device_name = Fridge plug
device_location = kitchen

[targets]
backends = home

[target:home]
influx_url = http://localhost:8086
bucket = solar
org = home
token = abc%def
measurement = energy

[http]
timeout = 2.5

[logging]
console_level = WARNING
debug_modules = solar_grabber.services, urllib3
structured_enabled = true
structured_path = /tmp/runs.jsonl
"""


def test_json_channel():
    cfg = resolve_config(None, SOURCES_JSON, TARGETS_JSON)
    assert cfg == AppConfig(
        sources=[
            InverterConfig(
                status_page_url="http://inverter",
                user="user",
                password="password",
                device_name="the thing",
                device_location="backyard",
            )
        ],
        targets=[
            InfluxTargetConfig(
                influx_url="http://influx",
                bucket="bucket",
                org="org",
                token="token",
                measurement="measurement",
            )
        ],
    )


def test_json_channel_smart_plug():
    sources = json.dumps([{"type": "Tasmota", "ip": "10.0.0.7", "device_name": "plug"}])
    cfg = resolve_config(None, sources, TARGETS_JSON)
    assert cfg.sources == [SmartPlugConfig(ip=IPv4Address("10.0.0.7"), device_name="plug")]


@pytest.mark.parametrize(
    "sources,targets",
    [(SOURCES_JSON, None), (None, TARGETS_JSON), (SOURCES_JSON, "")],
)
def test_partial_json_channel_is_rejected(sources, targets, tmp_path):
    conf_path = tmp_path / "solar.conf"
    conf_path.write_text(CONF)
    with pytest.raises(ConfigError, match="Supply all arguments or none"):
        resolve_config(str(conf_path), sources, targets)


def test_ini_channel(tmp_path):
    conf_path = tmp_path / "solar.conf"
    conf_path.write_text(CONF)
    cfg = resolve_config(str(conf_path), None, None)

    assert cfg.sources == [
        InverterConfig(
            status_page_url="http://192.168.1.50/status.html",
            user="admin",
            password="admin",
            device_name="Roof inverter",
        ),
        SmartPlugConfig(
            ip=IPv4Address("192.168.1.61"),
            device_name="Fridge plug",
            device_location="kitchen",
        ),
    ]
    assert cfg.targets[0].influx_url == "http://localhost:8086"
    assert cfg.targets[0].token == "abc%def"
    assert cfg.http.timeout == 2.5
    assert cfg.logging.console_level == "WARNING"
    assert cfg.logging.debug_modules == ["solar_grabber.services", "urllib3"]
    assert cfg.logging.structured_enabled is True
    assert cfg.logging.structured_path == "/tmp/runs.jsonl"


def test_missing_file_is_config_error(tmp_path):
    with pytest.raises(ConfigError, match="Failed to load config file"):
        Config.load(str(tmp_path / "absent.conf"))


def test_empty_sources_rejected():
    with pytest.raises(ConfigError, match="No sources given"):
        resolve_config(None, "[]", TARGETS_JSON)


def test_empty_targets_rejected():
    with pytest.raises(ConfigError, match="No publishers given"):
        resolve_config(None, SOURCES_JSON, "[]")


def test_ini_without_targets_rejected(tmp_path):
    conf_path = tmp_path / "solar.conf"
    conf_path.write_text(CONF.replace("backends = home", "backends ="))
    with pytest.raises(ConfigError, match="No publishers given"):
        Config.load(str(conf_path))


def test_ini_missing_section_rejected(tmp_path):
    conf_path = tmp_path / "solar.conf"
    conf_path.write_text(CONF.replace("devices = roof, plug", "devices = roof, plug, shed"))
    with pytest.raises(ConfigError, match=r"\[source:shed\]"):
        Config.load(str(conf_path))


def test_invalid_json_rejected():
    with pytest.raises(ConfigError, match="Expected JSON for 'sources'"):
        resolve_config(None, "[{not json", TARGETS_JSON)


def test_unknown_type_rejected():
    sources = json.dumps([{"type": "Shelly", "ip": "10.0.0.7", "device_name": "x"}])
    with pytest.raises(ConfigError, match="unknown source type 'Shelly'"):
        resolve_config(None, sources, TARGETS_JSON)


def test_missing_required_key_rejected():
    sources = json.dumps([{"type": "Inverter", "statusPageUrl": "http://x", "user": "u", "device_name": "x"}])
    with pytest.raises(ConfigError, match="'password'"):
        resolve_config(None, sources, TARGETS_JSON)


def test_invalid_ip_rejected():
    sources = json.dumps([{"type": "Tasmota", "ip": "plug.local", "device_name": "x"}])
    with pytest.raises(ConfigError, match="invalid IPv4 address"):
        resolve_config(None, sources, TARGETS_JSON)


def test_non_utf8_file_is_config_error(tmp_path):
    conf_path = tmp_path / "solar.conf"
    conf_path.write_bytes(b"[sources]\ndevices = roof\n# \xff\xfe broken\n")
    with pytest.raises(ConfigError, match="Failed to parse config file"):
        Config.load(str(conf_path))


def test_non_utf8_file_exits_non_zero(tmp_path, capsys):
    conf_path = tmp_path / "solar.conf"
    conf_path.write_bytes(b"\xff\xfe[sources]\n")
    assert main(["--config", str(conf_path), "--sources", "", "--targets", ""]) == 2
    assert "configuration error" in capsys.readouterr().err
