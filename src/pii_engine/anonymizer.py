"""IP address anonymization.

IPv4 keeps the first three octets and zeroes the last one
(192.168.1.42 -> 192.168.1.0).  IPv6 keeps the /64 prefix and drops the
interface identifier (2001:db8::1 -> 2001:db8::).  Both are accepted
pseudonymization techniques, so the expansion below is kept exact and
easy to audit.
"""

from __future__ import annotations
import re

from .exceptions import InvalidIpAddressError

_IPV4_RE = re.compile(r"^([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})\.([0-9]{1,3})\Z")
_IPV6_RE = re.compile(r"^[0-9a-fA-F:]+\Z")
_IPV6_GROUP_RE = re.compile(r"^[0-9a-fA-F]{1,4}\Z")


def anonymize_ipv4(ip: str) -> str:
    """Zero the last octet of a dotted-quad address."""
    m = _IPV4_RE.match(ip)
    if not m:
        raise InvalidIpAddressError(f"Invalid IPv4 address: {ip}")

    octets = m.groups()
    if any(int(o) > 255 for o in octets):
        raise InvalidIpAddressError(f"Invalid IPv4 address: {ip}")

    return f"{octets[0]}.{octets[1]}.{octets[2]}.0"


def anonymize_ipv6(ip: str) -> str:
    """Keep the first 64 bits of an IPv6 address and append ``::``."""
    if not _IPV6_RE.match(ip):
        raise InvalidIpAddressError(f"Invalid IPv6 address: {ip}")

    groups = _expand_ipv6(ip)
    if groups is None:
        raise InvalidIpAddressError(f"Invalid IPv6 address: {ip}")

    prefix = [g.lstrip("0") or "0" for g in groups[:4]]
    # Trailing zero groups of the prefix fold into the "::" suffix, which
    # keeps the result idempotent: 2001:db8:0:0:: is written 2001:db8::
    while prefix and prefix[-1] == "0":
        prefix.pop()
    return ":".join(prefix) + "::"


def anonymize_ip(ip: str) -> str:
    """Anonymize an IPv4 or IPv6 address, sniffing the syntax.

    Raises:
        InvalidIpAddressError: If the address is neither form.
    """
    if not isinstance(ip, str):
        raise InvalidIpAddressError(f"Invalid IP address: {ip!r}")
    if _IPV4_RE.match(ip):
        return anonymize_ipv4(ip)
    if _IPV6_RE.match(ip):
        return anonymize_ipv6(ip)
    raise InvalidIpAddressError(f"Invalid IP address: {ip}")


def is_ip_anonymized(ip: str) -> bool:
    """True if the address already carries no host part."""
    if not isinstance(ip, str):
        return False
    if _IPV4_RE.match(ip):
        return ip.endswith(".0") and all(int(o) <= 255 for o in ip.split("."))
    if _IPV6_RE.match(ip):
        groups = _expand_ipv6(ip)
        return groups is not None and all(g == "0000" for g in groups[4:])
    return False


def _expand_ipv6(ip: str) -> list[str] | None:
    """Expand ``::`` shorthand into 8 zero-padded groups.

    Returns None when the address does not resolve to exactly 8 valid
    16-bit groups.
    """
    if ip.count("::") > 1:
        return None

    if "::" in ip:
        left, right = ip.split("::")
        left_groups = left.split(":") if left else []
        right_groups = right.split(":") if right else []
        missing = 8 - len(left_groups) - len(right_groups)
        if missing < 1:
            return None
        groups = left_groups + ["0"] * missing + right_groups
    else:
        groups = ip.split(":")

    if len(groups) != 8 or not all(_IPV6_GROUP_RE.match(g) for g in groups):
        return None
    return [g.zfill(4) for g in groups]
