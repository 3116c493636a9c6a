# Re-export package modules for callers
from .config import settings, Settings
from .logger import get_logger
from .clock import Clock, SystemClock, FixedClock, epoch_seconds
from .exceptions import APNSAuthError, SigningFailed, KeyLoadError, APNSError
from .signing import Signer, ES256Signer, load_private_key, load_private_key_file
from .token_manager import (
    CachedToken,
    TokenManager,
    DEFAULT_FRESHNESS_WINDOW,
    get_token_manager,
    reset_token_manager,
)
from .apns_client import APNSClient, APNSResponse

__all__ = [
    "settings",
    "Settings",
    "get_logger",
    "Clock",
    "SystemClock",
    "FixedClock",
    "epoch_seconds",
    "APNSAuthError",
    "SigningFailed",
    "KeyLoadError",
    "APNSError",
    "Signer",
    "ES256Signer",
    "load_private_key",
    "load_private_key_file",
    "CachedToken",
    "TokenManager",
    "DEFAULT_FRESHNESS_WINDOW",
    "get_token_manager",
    "reset_token_manager",
    "APNSClient",
    "APNSResponse",
]
