"""
Error types raised by the APNs authentication package
"""

from typing import Optional


class APNSAuthError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class SigningFailed(APNSAuthError):
    """The private key could not produce a signature for the token."""


class KeyLoadError(APNSAuthError):
    """The private key could not be read, fetched or parsed."""


class APNSError(APNSAuthError):
    """APNs answered a push request with a non-success status."""

    def __init__(self, status_code: int, reason: Optional[str] = None, apns_id: Optional[str] = None):
        self.status_code = status_code
        self.reason = reason
        self.apns_id = apns_id
        super().__init__(f"APNs request failed with status {status_code}: {reason or 'unknown'}")
