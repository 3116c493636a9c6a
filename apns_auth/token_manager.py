"""
APNs provider authentication token management
Signs ES256 JWTs and reuses them until they are close to Apple's one hour limit
"""

import json
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from jwt.utils import base64url_encode

from .clock import Clock, SystemClock, epoch_seconds
from .config import APNS_TOKEN_MAX_AGE, Settings, settings
from .exceptions import KeyLoadError, SigningFailed
from .logger import get_logger
from .secret_store import SecretStore
from .signing import ES256Signer, Signer

logger = get_logger(__name__)

# APNs rejects tokens older than one hour; refresh a bit earlier
DEFAULT_FRESHNESS_WINDOW = 60 * 55


@dataclass(frozen=True)
class CachedToken:
    # "bearer " prefixed so it can go straight into the authorization header
    value: str
    issued_at: datetime


def _encode_segment(obj: dict) -> bytes:
    return base64url_encode(json.dumps(obj, separators=(",", ":")).encode("utf-8"))


class TokenManager:
    """
    Manages the provider token for a single APNs key
    - Generates a signed token on first use
    - Reuses it while younger than the freshness window
    - Regenerates synchronously once it goes stale

    Safe to share between threads. The cache slot is guarded by one lock,
    held only for the freshness check and the local signing step.
    """

    def __init__(
        self,
        signer: Signer,
        team_id: str,
        key_id: str,
        clock: Optional[Clock] = None,
        freshness_window: int = DEFAULT_FRESHNESS_WINDOW,
    ):
        if not team_id:
            raise ValueError("team_id is required")
        if not key_id:
            raise ValueError("key_id is required")
        if freshness_window <= 0 or freshness_window >= APNS_TOKEN_MAX_AGE:
            raise ValueError(
                f"freshness_window must be between 1 and {APNS_TOKEN_MAX_AGE - 1} seconds, got {freshness_window}"
            )

        self.signer = signer
        self.team_id = team_id
        self.key_id = key_id
        self.clock = clock or SystemClock()
        self.freshness_window = freshness_window

        self._lock = threading.Lock()
        self._cached: Optional[CachedToken] = None

    @classmethod
    def from_settings(cls, config: Settings = settings, clock: Optional[Clock] = None) -> "TokenManager":
        """
        Build a manager from configuration
        Key is taken from APNS_KEY_PATH, then APNS_PRIVATE_KEY, then Secret Manager
        """
        if config.key_path:
            signer = ES256Signer.from_file(config.key_path)
        elif config.private_key:
            signer = ES256Signer.from_pem(config.private_key)
        elif config.key_secret:
            if not config.project_id:
                raise KeyLoadError("GCP_PROJECT must be set to load the APNs key from Secret Manager")
            pem = SecretStore(config.project_id).get_secret(config.key_secret)
            signer = ES256Signer.from_pem(pem)
        else:
            raise KeyLoadError(
                "No APNs private key configured (set APNS_KEY_PATH, APNS_PRIVATE_KEY or APNS_KEY_SECRET)"
            )

        return cls(
            signer=signer,
            team_id=config.team_id,
            key_id=config.key_id,
            clock=clock,
            freshness_window=config.token_freshness_seconds,
        )

    def current_token(self) -> str:
        """
        Get a valid authorization header value

        Returns:
            "bearer <header>.<payload>.<signature>"

        Raises:
            SigningFailed: a new token was needed and could not be signed.
                The previous cache entry (if any) is kept.
        """
        with self._lock:
            cached = self._cached
            if cached is not None and self._is_fresh(cached):
                logger.debug(
                    "APNs token manager reusing previously generated token",
                    extra=self._event_fields(cached.issued_at),
                )
                return cached.value

            token = self._generate_token()
            self._cached = token
            return token.value

    def invalidate(self):
        """
        Drop the cached token, forcing a new one on next access.
        Useful when APNs reports the token as expired.
        """
        logger.info("🔄 Invalidating cached APNs provider token")
        with self._lock:
            self._cached = None

    def force_refresh(self) -> str:
        """Force immediate token regeneration"""
        with self._lock:
            self._cached = None
            token = self._generate_token()
            self._cached = token
            return token.value

    def get_token_status(self) -> dict:
        """Get current token status for debugging"""
        with self._lock:
            cached = self._cached

        status = {
            "has_token": cached is not None,
            "issuer": self.team_id,
            "key_id": self.key_id,
            "freshness_window": self.freshness_window,
        }
        if cached is None:
            status.update(issued_at=None, age_seconds=None, seconds_until_stale=0, is_fresh=False)
            return status

        age = self._age_seconds(cached)
        status.update(
            issued_at=cached.issued_at.isoformat(),
            age_seconds=age,
            seconds_until_stale=max(0, self.freshness_window - age),
            is_fresh=age < self.freshness_window,
        )
        return status

    def _age_seconds(self, cached: CachedToken) -> int:
        return epoch_seconds(self.clock.now()) - epoch_seconds(cached.issued_at)

    def _is_fresh(self, cached: CachedToken) -> bool:
        return self._age_seconds(cached) < self.freshness_window

    def _event_fields(self, issued_at: datetime) -> dict:
        return {
            "issuedAt": issued_at.isoformat(),
            "issuer": self.team_id,
            "keyId": self.key_id,
        }

    def _generate_token(self) -> CachedToken:
        """Sign a new token. Must be called with the lock held."""
        issued_at = self.clock.now()

        header = {"alg": "ES256", "typ": "JWT", "kid": self.key_id}
        # APNs expects iat as a string
        payload = {"iss": self.team_id, "iat": str(epoch_seconds(issued_at)), "kid": self.key_id}

        signing_input = _encode_segment(header) + b"." + _encode_segment(payload)

        try:
            signature = self.signer.sign(signing_input)
        except SigningFailed as e:
            logger.error(f"❌ APNs token signing failed: {e}", extra=self._event_fields(issued_at))
            raise
        except Exception as e:
            logger.error(f"❌ APNs token signing failed: {e}", extra=self._event_fields(issued_at))
            raise SigningFailed(f"Could not sign APNs provider token: {e}") from e

        token = signing_input + b"." + base64url_encode(signature)

        logger.debug(
            "APNs token manager generated new token",
            extra=self._event_fields(issued_at),
        )

        return CachedToken(value="bearer " + token.decode("ascii"), issued_at=issued_at)


# Process-wide instance
_token_manager: Optional[TokenManager] = None
_manager_lock = threading.Lock()


def get_token_manager() -> TokenManager:
    """Get or create the process-wide TokenManager from settings"""
    global _token_manager

    # Fast path: already created
    if _token_manager is not None:
        return _token_manager

    with _manager_lock:
        # Another thread might have created it while we waited
        if _token_manager is None:
            _token_manager = TokenManager.from_settings(settings)
        return _token_manager


def reset_token_manager():
    """Forget the process-wide instance (tests, key rotation)"""
    global _token_manager
    with _manager_lock:
        _token_manager = None
