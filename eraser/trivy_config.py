"""Configuration of the vulnerability scanner."""

import re
from collections.abc import Iterable, Mapping, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Union

import yaml

SEVERITY_CRITICAL = "CRITICAL"
SEVERITY_HIGH = "HIGH"
SEVERITY_MEDIUM = "MEDIUM"
SEVERITY_LOW = "LOW"
SEVERITY_UNKNOWN = "UNKNOWN"

VULN_TYPE_OS = "os"
VULN_TYPE_LIBRARY = "library"

SECURITY_CHECK_VULN = "vuln"
SECURITY_CHECK_CONFIG = "config"
SECURITY_CHECK_SECRET = "secret"

DEFAULT_CACHE_DIR = "/var/lib/trivy"
DEFAULT_DB_REPO = "ghcr.io/aquasecurity/trivy-db"

_HOUR = 3600.0


@dataclass
class VulnConfig:
    """Which vulnerabilities make an image non-compliant."""

    ignore_unfixed: bool = True
    types: list[str] = field(default_factory=lambda: [VULN_TYPE_OS, VULN_TYPE_LIBRARY])
    security_checks: list[str] = field(default_factory=lambda: [SECURITY_CHECK_VULN])
    severities: list[str] = field(default_factory=lambda: [SEVERITY_CRITICAL])


@dataclass
class TimeoutConfig:
    """Scan time limits, in seconds."""

    total: float = 23 * _HOUR
    per_image: float = _HOUR


@dataclass
class Config:
    """Scanner settings."""

    cache_dir: str = DEFAULT_CACHE_DIR
    db_repo: str = DEFAULT_DB_REPO
    delete_failed_images: bool = True
    vulnerabilities: VulnConfig = field(default_factory=VulnConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)


def default_config() -> Config:
    """Return the settings used when no configuration is given."""
    return Config()


_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": _HOUR,
}
_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """Parse a duration such as ``1h30m`` or ``250ms`` into seconds."""
    if not isinstance(text, str):
        raise ValueError(f"duration must be a string, got {text!r}")
    body = text
    sign = 1.0
    if body[:1] in ("+", "-"):
        sign = -1.0 if body[0] == "-" else 1.0
        body = body[1:]
    if body == "0":
        return 0.0
    if not body:
        raise ValueError(f'invalid duration "{text}"')
    total = 0.0
    pos = 0
    for match in _COMPONENT.finditer(body):
        if match.start() != pos:
            raise ValueError(f'invalid duration "{text}"')
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    if pos != len(body):
        raise ValueError(f'invalid duration "{text}"')
    return sign * total


def _expect(value: Any, kind: type, key: str) -> Any:
    if not isinstance(value, kind):
        raise ValueError(f"{key} must be of type {kind.__name__}, got {value!r}")
    return value


def _string_list(value: Any, key: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key} must be a list of strings")
    return list(value)


def _merge_vuln(vuln: VulnConfig, data: Any) -> None:
    if data is None:
        return
    _expect(data, Mapping, "vulnerabilities")
    for key, value in data.items():
        if value is None:
            continue
        if key == "ignoreUnfixed":
            vuln.ignore_unfixed = _expect(value, bool, key)
        elif key == "types":
            vuln.types = _string_list(value, key)
        elif key == "securityChecks":
            vuln.security_checks = _string_list(value, key)
        elif key == "severities":
            vuln.severities = _string_list(value, key)


def _merge_timeout(timeout: TimeoutConfig, data: Any) -> None:
    if data is None:
        return
    _expect(data, Mapping, "timeout")
    for key, value in data.items():
        if value is None:
            continue
        if key == "total":
            timeout.total = parse_duration(value)
        elif key == "perImage":
            timeout.per_image = parse_duration(value)


def config_from_mapping(data: Any) -> Config:
    """Overlay the fields present in ``data`` on the default settings."""
    cfg = default_config()
    if data is None:
        return cfg
    _expect(data, Mapping, "scanner config")
    for key, value in data.items():
        if value is None:
            continue
        if key == "cacheDir":
            cfg.cache_dir = _expect(value, str, key)
        elif key == "dbRepo":
            cfg.db_repo = _expect(value, str, key)
        elif key == "deleteFailedImages":
            cfg.delete_failed_images = _expect(value, bool, key)
        elif key == "vulnerabilities":
            _merge_vuln(cfg.vulnerabilities, value)
        elif key == "timeout":
            _merge_timeout(cfg.timeout, value)
    return cfg


def load_config(filename: Union[str, Path]) -> Config:
    """Read scanner settings from the ``components.scanner.config`` string of an eraser config file."""
    document = yaml.safe_load(Path(filename).read_text())
    if document is None:
        document = {}
    _expect(document, Mapping, "eraser config")
    components = document.get("components") or {}
    _expect(components, Mapping, "components")
    scanner = components.get("scanner") or {}
    _expect(scanner, Mapping, "scanner")
    scanner_yaml = scanner.get("config")
    if scanner_yaml is None:
        scanner_yaml = ""
    _expect(scanner_yaml, str, "scanner config")
    return config_from_mapping(yaml.safe_load(scanner_yaml))


def parse_comma_separated_options(
    options: MutableMapping[str, bool], comma_separated_list: str
) -> None:
    """Set to True each listed option; raise ValueError at the first unknown one."""
    for item in comma_separated_list.split(","):
        if item not in options:
            raise ValueError(f"'{item}' was not one of {list(options)!r}")
        options[item] = True


def true_keys(options: Mapping[str, bool]) -> list[str]:
    """Return the options that are switched on."""
    return [key for key, enabled in options.items() if enabled]


def _as_list(values: Iterable[str]) -> list[str]:
    return list(values)