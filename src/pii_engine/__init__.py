"""pii-engine: deterministic PII detection, reversible masking, IP
anonymization and log leak scanning."""

from .anonymizer import anonymize_ip, anonymize_ipv4, anonymize_ipv6, is_ip_anonymized
from .config import create_middleware, load_config, load_from_yaml
from .detector import contains_pii, detect, detect_by_category
from .exceptions import (
    ComplianceViolationError, ConfigError, InvalidIpAddressError, PiiEngineError,
)
from .masker import get_summary, mask, restore, summarize, validate_masked_text
from .middleware import RedactionContext, RedactMiddleware, redact_input, restore_output
from .patterns import get_pattern, is_whitelisted
from .scanner import ScannerConfig, parse_log_file, scan_line, scan_lines
from .streaming import StreamingRestorer
from .types import (
    LogLine, PiiCategory, PiiDetectionResult, PiiEntity, PiiLeakResult,
    PiiMapping, PiiMaskingResult, PiiScanResult, PiiSummary, Severity,
)

__all__ = [
    "detect", "detect_by_category", "contains_pii", "get_pattern", "is_whitelisted",
    "mask", "restore", "validate_masked_text", "summarize", "get_summary",
    "anonymize_ip", "anonymize_ipv4", "anonymize_ipv6", "is_ip_anonymized",
    "scan_line", "scan_lines", "parse_log_file", "ScannerConfig",
    "redact_input", "restore_output", "RedactionContext", "RedactMiddleware",
    "StreamingRestorer",
    "create_middleware", "load_config", "load_from_yaml",
    "PiiEngineError", "InvalidIpAddressError", "ComplianceViolationError", "ConfigError",
    "LogLine", "PiiCategory", "PiiDetectionResult", "PiiEntity", "PiiLeakResult",
    "PiiMapping", "PiiMaskingResult", "PiiScanResult", "PiiSummary", "Severity",
]
__version__ = "0.1.0"
