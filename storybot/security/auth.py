from __future__ import annotations
import secrets

def constant_time_equals(a: str, b: str) -> bool:
    return secrets.compare_digest(a.encode("utf-8"), b.encode("utf-8"))

def verify_secret(expected: str | None, provided: str | None) -> bool:
    """Check a provider-supplied secret against the configured one.

    No configured secret means the check is disabled.
    """
    if not expected:
        return True
    if not provided:
        return False
    return constant_time_equals(expected, provided)
