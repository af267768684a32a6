# solar_grabber/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from ipaddress import IPv4Address, AddressValueError
from pathlib import Path
from typing import Any, Mapping
import configparser
import json


DEFAULT_CONFIG_PATH = "/etc/solar-grabber.conf"


class ConfigError(ValueError):
    """Configuration is missing, malformed or contradictory."""


def _require(data: Mapping[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ConfigError(f"{where}: missing required key '{key}'")
    if not isinstance(value, str):
        raise ConfigError(f"{where}: '{key}' must be a string")
    return value


def _optional(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class InverterConfig:
    status_page_url: str
    user: str
    password: str
    device_name: str
    device_location: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], where: str) -> "InverterConfig":
        return cls(
            status_page_url=_require(data, "statusPageUrl", where),
            user=_require(data, "user", where),
            password=_require(data, "password", where),
            device_name=_require(data, "device_name", where),
            device_location=_optional(data, "device_location"),
        )


@dataclass(frozen=True)
class SmartPlugConfig:
    ip: IPv4Address
    device_name: str
    device_location: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], where: str) -> "SmartPlugConfig":
        raw_ip = _require(data, "ip", where)
        try:
            ip = IPv4Address(raw_ip.strip())
        except AddressValueError as exc:
            raise ConfigError(f"{where}: invalid IPv4 address '{raw_ip}'") from exc
        return cls(
            ip=ip,
            device_name=_require(data, "device_name", where),
            device_location=_optional(data, "device_location"),
        )


# Discriminant values accepted in the "type" key of a source.
SOURCE_KINDS = {
    "Inverter": InverterConfig,
    "Tasmota": SmartPlugConfig,
}

SourceConfig = InverterConfig | SmartPlugConfig


@dataclass(frozen=True)
class InfluxTargetConfig:
    influx_url: str
    bucket: str
    org: str
    token: str
    measurement: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], where: str) -> "InfluxTargetConfig":
        return cls(
            influx_url=_require(data, "influxUrl", where),
            bucket=_require(data, "bucket", where),
            org=_require(data, "org", where),
            token=_require(data, "token", where),
            measurement=_require(data, "measurement", where),
        )


@dataclass
class HttpConfig:
    timeout: float = 10.0


@dataclass
class LoggingConfig:
    console_level: str = "INFO"
    console_quiet: bool = False
    debug_modules: list[str] = field(default_factory=list)
    structured_enabled: bool = False
    structured_path: str | None = None


@dataclass
class AppConfig:
    sources: list[SourceConfig]
    targets: list[InfluxTargetConfig]
    http: HttpConfig = field(default_factory=HttpConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> "AppConfig":
        if not self.sources:
            raise ConfigError("No sources given")
        if not self.targets:
            raise ConfigError("No publishers given, try 'targets' (SG_INFLUXDBS)")
        return self


def parse_source(data: Any, where: str) -> SourceConfig:
    if not isinstance(data, Mapping):
        raise ConfigError(f"{where}: expected an object")
    kind = data.get("type")
    if kind is None:
        raise ConfigError(f"{where}: missing source 'type'")
    cfg_cls = SOURCE_KINDS.get(str(kind).strip())
    if cfg_cls is None:
        known = ", ".join(sorted(SOURCE_KINDS))
        raise ConfigError(f"{where}: unknown source type '{kind}' (expected one of {known})")
    return cfg_cls.from_mapping(data, where)


def _parse_json_list(raw: str, name: str) -> list[Any]:
    try:
        items = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Expected JSON for '{name}': {exc}") from exc
    if not isinstance(items, list):
        raise ConfigError(f"Expected a JSON array for '{name}'")
    return items


class Config:
    """INI configuration file reader."""

    def __init__(self, path: str):
        self.path = Path(path)
        self.parser = configparser.ConfigParser(inline_comment_prefixes=("#",), interpolation=None)
        try:
            read = self.parser.read(self.path, encoding="utf-8")
        except (configparser.Error, UnicodeDecodeError) as exc:
            raise ConfigError(f"Failed to parse config file {self.path}: {exc}") from exc
        if not read:
            raise ConfigError(f"Failed to load config file: {self.path}")

    @classmethod
    def load(cls, path: str) -> AppConfig:
        cfg = cls(path)

        p = cfg.parser

        def _as_bool(value: str) -> bool:
            return value.strip().lower() == "true"

        def _names(section: str, key: str) -> list[str]:
            if section not in p:
                return []
            raw = p[section].get(key, "")
            return [x.strip() for x in raw.split(",") if x.strip()]

        # --- Sources ---
        sources: list[SourceConfig] = []
        for name in _names("sources", "devices"):
            sec = f"source:{name}"
            if sec not in p:
                raise ConfigError(f"Missing section [{sec}] for source '{name}'")
            sec_data = dict(p[sec])
            # INI keys are snake_case; accept the JSON spelling as well
            if "status_page_url" in sec_data:
                sec_data.setdefault("statusPageUrl", sec_data.pop("status_page_url"))
            if "statuspageurl" in sec_data:
                sec_data.setdefault("statusPageUrl", sec_data.pop("statuspageurl"))
            sources.append(parse_source(sec_data, f"[{sec}]"))

        # --- Targets ---
        targets: list[InfluxTargetConfig] = []
        for name in _names("targets", "backends"):
            sec = f"target:{name}"
            if sec not in p:
                raise ConfigError(f"Missing section [{sec}] for target '{name}'")
            sec_data = dict(p[sec])
            if "influx_url" in sec_data:
                sec_data.setdefault("influxUrl", sec_data.pop("influx_url"))
            if "influxurl" in sec_data:
                sec_data.setdefault("influxUrl", sec_data.pop("influxurl"))
            targets.append(InfluxTargetConfig.from_mapping(sec_data, f"[{sec}]"))

        # --- HTTP ---
        http_kwargs = {}
        if "http" in p and "timeout" in p["http"]:
            try:
                http_kwargs["timeout"] = float(p["http"]["timeout"])
            except ValueError as exc:
                raise ConfigError(f"[http] timeout must be a number: {exc}") from exc
        http_cfg = HttpConfig(**http_kwargs)

        # --- Logging ---
        logging_kwargs = {}
        if "logging" in p:
            logging_sec = p["logging"]
            if "console_level" in logging_sec:
                logging_kwargs["console_level"] = logging_sec["console_level"]
            if "console_quiet" in logging_sec:
                logging_kwargs["console_quiet"] = _as_bool(logging_sec["console_quiet"])
            if "debug_modules" in logging_sec:
                raw = logging_sec["debug_modules"]
                logging_kwargs["debug_modules"] = [x.strip() for x in raw.split(",") if x.strip()]
            if "structured_enabled" in logging_sec:
                logging_kwargs["structured_enabled"] = _as_bool(logging_sec["structured_enabled"])
            if "structured_path" in logging_sec:
                logging_kwargs["structured_path"] = logging_sec["structured_path"]
        logging_cfg = LoggingConfig(**logging_kwargs)

        return AppConfig(
            sources=sources,
            targets=targets,
            http=http_cfg,
            logging=logging_cfg,
        ).validate()

    @staticmethod
    def from_json(sources_raw: str, targets_raw: str) -> AppConfig:
        sources = [
            parse_source(item, f"sources[{idx}]")
            for idx, item in enumerate(_parse_json_list(sources_raw, "sources"))
        ]
        targets = []
        for idx, item in enumerate(_parse_json_list(targets_raw, "targets")):
            if not isinstance(item, Mapping):
                raise ConfigError(f"targets[{idx}]: expected an object")
            targets.append(InfluxTargetConfig.from_mapping(item, f"targets[{idx}]"))
        return AppConfig(sources=sources, targets=targets).validate()


def resolve_config(
    config_path: str | None,
    sources_raw: str | None,
    targets_raw: str | None,
) -> AppConfig:
    """Pick the configuration channel and return a validated AppConfig.

    JSON given on the command line (or via environment) wins; it must supply
    both sources and targets. Otherwise the INI file is read.
    """
    if sources_raw and targets_raw:
        return Config.from_json(sources_raw, targets_raw)
    if sources_raw or targets_raw:
        raise ConfigError("Supply all arguments or none")
    return Config.load(config_path or DEFAULT_CONFIG_PATH)
