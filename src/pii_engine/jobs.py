"""Scheduled log scan: reads log files, scans them, and raises one alert.

Schedule: daily at 04:00, after IP anonymization of the audit logs.

Usage:
    result = scan_log_files(["/var/log/app/app.log"], alert_sink=send_email)

Alerts carry counts only, never log content: the content is what leaked.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from .scanner import DEFAULT_SCANNER_CONFIG, ScannerConfig, parse_log_file, scan_lines
from .types import PiiLeakResult, PiiScanResult, Severity

logger = logging.getLogger(__name__)

PII_LOG_SCAN_CRON = "0 4 * * *"


@dataclass(frozen=True)
class Alert:
    """Notification for the security team."""
    severity: Severity
    title: str
    message: str
    metadata: dict[str, int] = field(default_factory=dict)


AlertSink = Callable[[Alert], None]


def build_alert(result: PiiScanResult) -> Alert | None:
    """One alert for the highest severity present; None for a clean scan."""
    counts = result.count_by_severity()
    critical = counts[Severity.CRITICAL]
    warning = counts[Severity.WARNING]
    info = counts[Severity.INFO]
    footer = (
        f"Total leaks: {result.leak_count}\n"
        f"Lines scanned: {result.total_lines}"
    )

    if critical:
        return Alert(
            severity=Severity.CRITICAL,
            title="CRITICAL: PII leak detected in logs",
            message=(
                f"Detected {critical} critical PII leak(s) in application logs.\n\n"
                "This is a GDPR Art. 32 security violation. "
                "Review and remediate immediately.\n\n" + footer
            ),
            metadata={
                "critical_count": critical,
                "warning_count": warning,
                "info_count": info,
                "total_lines": result.total_lines,
            },
        )
    if warning:
        return Alert(
            severity=Severity.WARNING,
            title="WARNING: PII leak detected in logs",
            message=(
                f"Detected {warning} PII leak(s) in application logs.\n\n"
                "Review and remediate.\n\n" + footer
            ),
            metadata={
                "warning_count": warning,
                "info_count": info,
                "total_lines": result.total_lines,
            },
        )
    if info:
        return Alert(
            severity=Severity.INFO,
            title="INFO: PII detected in logs",
            message=f"Detected {info} low-severity PII instance(s) in logs.\n\n" + footer,
            metadata={"info_count": info, "total_lines": result.total_lines},
        )
    return None


def scan_log_files(
    paths: Iterable[str | Path],
    *,
    alert_sink: AlertSink | None = None,
    config: ScannerConfig = DEFAULT_SCANNER_CONFIG,
) -> PiiScanResult:
    """Scan log files and dispatch an alert if anything leaked.

    Raises:
        OSError: If a file cannot be read (logged, then re-raised).
    """
    started = time.perf_counter()
    logger.info("job.pii_log_scan_started")

    total_lines = 0
    leaks: list[PiiLeakResult] = []
    try:
        for path in paths:
            content = Path(path).expanduser().read_text(encoding="utf-8", errors="replace")
            result = scan_lines(parse_log_file(content), config)
            total_lines += result.total_lines
            leaks.extend(result.leaks)
    except OSError as exc:
        logger.error(
            "job.pii_log_scan_failed error=%s duration_ms=%d",
            exc, round((time.perf_counter() - started) * 1000),
        )
        raise

    aggregate = PiiScanResult(
        total_lines=total_lines,
        leak_count=len(leaks),
        leaks=tuple(leaks),
        duration_ms=round((time.perf_counter() - started) * 1000),
    )
    logger.info(
        "job.pii_log_scan_completed total_lines=%d leak_count=%d duration_ms=%d",
        aggregate.total_lines, aggregate.leak_count, aggregate.duration_ms,
    )

    alert = build_alert(aggregate)
    if alert is not None and alert_sink is not None:
        alert_sink(alert)
    return aggregate
