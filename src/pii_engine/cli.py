"""CLI interface for pii-engine, for ops scripts and cron.

Usage:
    # Detect PII in text (stdin: text, stdout: JSON spans, no values)
    echo 'Contact Jean Dupont' | pii-engine detect

    # Mask text (stdout: masked text + audit summary; mappings are never written)
    echo 'Mail jean@example.com' | pii-engine mask

    # Anonymize IP addresses
    pii-engine anonymize-ip 192.168.1.42 2001:db8::1

    # Scan log files for leaks (exit status 2 on a critical leak)
    pii-engine scan-logs /var/log/app/app.log
"""

from __future__ import annotations
import argparse
import json
import logging
import sys

from .anonymizer import anonymize_ip
from .config import load_config, load_from_yaml
from .detector import detect
from .exceptions import InvalidIpAddressError, PiiEngineError
from .jobs import scan_log_files
from .masker import mask, summarize, validate_masked_text
from .types import Severity

EXIT_CRITICAL = 2


def cmd_detect(args: argparse.Namespace) -> int:
    """Detect PII in text on stdin."""
    result = detect(sys.stdin.read())
    output = {
        "total_count": result.total_count,
        "categories": [c.value for c in result.detected_categories],
        "entities": [
            {"category": e.category.value, "start": e.start, "end": e.end}
            for e in result.entities
        ],
    }
    json.dump(output, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def cmd_mask(args: argparse.Namespace) -> int:
    """Mask PII in text on stdin."""
    text = sys.stdin.read()
    cfg = args.config
    entities = [
        e for e in detect(text).entities if e.category not in cfg["skip_categories"]
    ]
    result = mask(text, entities)
    if not validate_masked_text(result.masked_text, result.mappings):
        sys.stderr.write("masked text still contains PII; refusing to output it\n")
        return 1

    output = {"text": result.masked_text, **summarize(result.mappings).as_dict()}
    json.dump(output, sys.stdout, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def cmd_anonymize_ip(args: argparse.Namespace) -> int:
    """Anonymize each IP given on the command line."""
    status = 0
    for ip in args.ips:
        try:
            sys.stdout.write(anonymize_ip(ip) + "\n")
        except InvalidIpAddressError as exc:
            sys.stderr.write(f"{exc}\n")
            status = 1
    return status


def cmd_scan_logs(args: argparse.Namespace) -> int:
    """Scan log files and print a JSON leak report."""
    result = scan_log_files(args.files, config=args.config["scanner"])
    output = {
        "total_lines": result.total_lines,
        "leak_count": result.leak_count,
        "duration_ms": result.duration_ms,
        "leaks": [
            {
                "line_number": leak.log_line.line_number,
                "pii_types": sorted(c.value for c in leak.pii_types),
                "pii_count": leak.pii_count,
                "severity": leak.severity.value,
            }
            for leak in result.leaks
        ],
    }
    json.dump(output, sys.stdout, indent=2)
    sys.stdout.write("\n")
    if any(leak.severity is Severity.CRITICAL for leak in result.leaks):
        return EXIT_CRITICAL
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pii-engine",
        description="PII detection, masking and log leak scanning",
    )
    parser.add_argument("--config", default=None, help="YAML config path")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("detect", help="Detect PII spans (text on stdin)")
    sub.add_parser("mask", help="Mask PII (text on stdin)")
    p_ip = sub.add_parser("anonymize-ip", help="Anonymize IPv4/IPv6 addresses")
    p_ip.add_argument("ips", nargs="+")
    p_scan = sub.add_parser("scan-logs", help="Scan log files for PII leaks")
    p_scan.add_argument("files", nargs="+")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        args.config = load_from_yaml(args.config) if args.config else load_config({})
    except (OSError, PiiEngineError) as exc:
        sys.stderr.write(f"config error: {exc}\n")
        return 1

    cmds = {
        "detect": cmd_detect,
        "mask": cmd_mask,
        "anonymize-ip": cmd_anonymize_ip,
        "scan-logs": cmd_scan_logs,
    }
    return cmds[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
