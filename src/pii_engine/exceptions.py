"""pii-engine exceptions."""


class PiiEngineError(Exception):
    """Base exception."""


class InvalidIpAddressError(PiiEngineError, ValueError):
    """Malformed IP address given to the anonymizer."""


class ComplianceViolationError(PiiEngineError):
    """Masked text still contains an original PII value; do not forward it."""


class ConfigError(PiiEngineError):
    """Configuration error."""
