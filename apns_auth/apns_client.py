"""
APNs HTTP/2 sender
Attaches the provider token to each push request
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .config import settings
from .exceptions import APNSError
from .logger import get_logger
from .token_manager import TokenManager

logger = get_logger(__name__)

# Reasons that mean the provider token itself was rejected
TOKEN_REJECTION_REASONS = {"ExpiredProviderToken", "InvalidProviderToken"}


@dataclass(frozen=True)
class APNSResponse:
    status_code: int
    apns_id: Optional[str] = None
    apns_unique_id: Optional[str] = None


class APNSClient:
    """
    Thin wrapper around the APNs provider API
    Payloads are sent as given; building them is up to the caller.
    """

    DEVICE_PATH = "/3/device/{device_token}"

    def __init__(
        self,
        token_manager: TokenManager,
        topic: Optional[str] = None,
        host: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.token_manager = token_manager
        self.topic = topic if topic is not None else settings.topic
        self.host = (host or settings.host).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.request_timeout
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.Client(http2=True, timeout=self.timeout)

    def close(self):
        if self._owns_client:
            self.http_client.close()

    def __enter__(self) -> "APNSClient":
        return self

    def __exit__(self, *exc_info):
        self.close()

    def send(
        self,
        payload: Dict[str, Any],
        device_token: str,
        push_type: str = "alert",
        expiration: Optional[int] = None,
        priority: Optional[int] = None,
        topic: Optional[str] = None,
        apns_id: Optional[str] = None,
        collapse_id: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> APNSResponse:
        """
        Send a notification to one device

        Args:
            payload: JSON-serializable notification body
            device_token: hex device token from the app's registration
            timeout: deadline in seconds for this request only

        Raises:
            SigningFailed: no provider token could be produced
            APNSError: APNs rejected the request
        """
        headers = self._build_headers(
            push_type=push_type,
            expiration=expiration,
            priority=priority,
            topic=topic,
            apns_id=apns_id,
            collapse_id=collapse_id,
        )
        url = self.host + self.DEVICE_PATH.format(device_token=device_token)
        body = json.dumps(payload, separators=(",", ":")).encode("utf-8")

        response = self.http_client.post(
            url,
            content=body,
            headers=headers,
            timeout=timeout if timeout is not None else self.timeout,
        )

        if response.status_code == 200:
            logger.info(f"✅ Delivered {push_type} notification to {device_token[:8]}...")
            return APNSResponse(
                status_code=response.status_code,
                apns_id=response.headers.get("apns-id"),
                apns_unique_id=response.headers.get("apns-unique-id"),
            )

        reason = self._error_reason(response)
        if response.status_code == 403 and reason in TOKEN_REJECTION_REASONS:
            logger.warning(f"APNs rejected provider token ({reason}), dropping cached token")
            self.token_manager.invalidate()

        logger.error(f"❌ APNs returned {response.status_code} for {device_token[:8]}...: {reason}")
        raise APNSError(response.status_code, reason, response.headers.get("apns-id"))

    def send_complication_notification(
        self,
        payload: Dict[str, Any],
        device_token: str,
        expiration: Optional[int] = None,
        priority: Optional[int] = None,
        topic: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> APNSResponse:
        """Send a watchOS complication update"""
        if topic is None and self.topic:
            topic = f"{self.topic}.complication"
        return self.send(
            payload,
            device_token,
            push_type="complication",
            expiration=expiration,
            priority=priority,
            topic=topic,
            timeout=timeout,
        )

    def _build_headers(
        self,
        push_type: str,
        expiration: Optional[int],
        priority: Optional[int],
        topic: Optional[str],
        apns_id: Optional[str],
        collapse_id: Optional[str],
    ) -> Dict[str, str]:
        headers = {
            "authorization": self.token_manager.current_token(),
            "apns-push-type": push_type,
            "content-type": "application/json",
        }
        resolved_topic = topic or self.topic
        if resolved_topic:
            headers["apns-topic"] = resolved_topic
        if expiration is not None:
            headers["apns-expiration"] = str(expiration)
        if priority is not None:
            headers["apns-priority"] = str(priority)
        if apns_id:
            headers["apns-id"] = apns_id
        if collapse_id:
            headers["apns-collapse-id"] = collapse_id
        return headers

    @staticmethod
    def _error_reason(response: httpx.Response) -> Optional[str]:
        try:
            data = response.json()
        except ValueError:
            return None
        return data.get("reason") if isinstance(data, dict) else None
