"""Scanning images for vulnerabilities and sorting them by the result."""

import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

from eraser.images import Image
from eraser.trivy_config import (
    SECURITY_CHECK_CONFIG,
    SECURITY_CHECK_SECRET,
    SECURITY_CHECK_VULN,
    SEVERITY_CRITICAL,
    SEVERITY_HIGH,
    SEVERITY_LOW,
    SEVERITY_MEDIUM,
    SEVERITY_UNKNOWN,
    VULN_TYPE_LIBRARY,
    VULN_TYPE_OS,
    Config,
)

log = logging.getLogger("eraser.scanner")


class ScanStatus(IntEnum):
    FAILED = 0
    NON_COMPLIANT = 1
    OK = 2


@dataclass
class Vulnerability:
    """One finding in a scan report."""

    vulnerability_id: str = ""
    severity: str = ""
    fixed_version: str = ""


def _flags(keys: Iterable[str]) -> dict[str, bool]:
    return {key: False for key in keys}


@dataclass
class OptionMaps:
    """The recognised severities, vulnerability types and checks, each on or off."""

    severities: dict[str, bool] = field(
        default_factory=lambda: _flags(
            [SEVERITY_CRITICAL, SEVERITY_HIGH, SEVERITY_MEDIUM, SEVERITY_LOW, SEVERITY_UNKNOWN]
        )
    )
    vuln_types: dict[str, bool] = field(
        default_factory=lambda: _flags([VULN_TYPE_OS, VULN_TYPE_LIBRARY])
    )
    security_checks: dict[str, bool] = field(
        default_factory=lambda: _flags(
            [SECURITY_CHECK_VULN, SECURITY_CHECK_SECRET, SECURITY_CHECK_CONFIG]
        )
    )

    @classmethod
    def from_config(cls, cfg: Config) -> "OptionMaps":
        """Switch on every option the configuration lists."""
        maps = cls()
        vuln = cfg.vulnerabilities
        for values, target in (
            (vuln.severities, maps.severities),
            (vuln.types, maps.vuln_types),
            (vuln.security_checks, maps.security_checks),
        ):
            for value in values:
                target[value] = True
        return maps


def report_is_non_compliant(
    results: Iterable[Iterable[Vulnerability]],
    severities: Mapping[str, bool],
    ignore_unfixed: bool,
) -> bool:
    """Whether any finding has a switched-on severity; unfixed ones may be ignored."""
    for vulnerabilities in results:
        for vuln in vulnerabilities:
            if ignore_unfixed and vuln.fixed_version == "":
                continue
            severity = vuln.severity or SEVERITY_UNKNOWN
            if severities.get(severity, False):
                return True
    return False


class Scanner(ABC):
    """Scans single images within an overall time budget."""

    @abstractmethod
    def scan(self, image: Image) -> ScanStatus: ...

    @abstractmethod
    def expired(self) -> bool: ...


Analyzer = Callable[[str, float], Iterable[Iterable[Vulnerability]]]


class ImageScanner(Scanner):
    """Scans an image by trying each of its references until one can be analysed.

    ``analyze(ref, per_image_timeout)`` returns the report's results, each a
    list of vulnerabilities, or raises when the reference cannot be scanned.
    """

    def __init__(
        self,
        analyze: Analyzer,
        config: Config,
        options: Optional[OptionMaps] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.analyze = analyze
        self.config = config
        self.options = options or OptionMaps.from_config(config)
        self.clock = clock
        self.deadline = clock() + config.timeout.total

    def expired(self) -> bool:
        return self.clock() >= self.deadline

    def scan(self, image: Image) -> ScanStatus:
        refs = [*image.digests, *image.names]
        log.info("scanning image with id %s refs=%s", image.image_id, refs)
        for ref in refs:
            log.info("scanning image with ref %s", ref)
            try:
                results = self.analyze(ref, self.config.timeout.per_image)
            except Exception as err:  # noqa: BLE001 - the next reference is tried
                log.error("error scanning image %s reference %s: %s", image.image_id, ref, err)
                continue
            if report_is_non_compliant(
                results, self.options.severities, self.config.vulnerabilities.ignore_unfixed
            ):
                return ScanStatus.NON_COMPLIANT
            return ScanStatus.OK
        return ScanStatus.FAILED


def scan(
    scanner: Scanner, all_images: Sequence[Image]
) -> tuple[list[Image], list[Image], bool]:
    """Scan every image; return (vulnerable, failed, timed_out).

    When the overall time runs out, the images not yet scanned count as failed.
    """
    vulnerable: list[Image] = []
    failed: list[Image] = []
    for idx, image in enumerate(all_images):
        if scanner.expired():
            failed.extend(all_images[idx:])
            log.error("image scan total timeout exceeded")
            return vulnerable, failed, True
        try:
            status = scanner.scan(image)
        except Exception as err:  # noqa: BLE001 - a failed scan is recorded
            failed.append(image)
            log.error("scan failed: %s", err)
            continue
        if status == ScanStatus.NON_COMPLIANT:
            log.info("vulnerable image found: %s", image)
            vulnerable.append(image)
        elif status == ScanStatus.FAILED:
            failed.append(image)
    return vulnerable, failed, False