"""
ES256 signing for provider tokens
Loads Apple .p8 keys and produces raw (r || s) ECDSA P-256 signatures
"""

from pathlib import Path
from typing import Protocol, Union

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec
from jwt.algorithms import ECAlgorithm

from .exceptions import KeyLoadError, SigningFailed
from .logger import get_logger

logger = get_logger(__name__)


class Signer(Protocol):
    def sign(self, data: bytes) -> bytes:
        """Sign `data`, raising SigningFailed if no signature can be produced."""
        ...


def load_private_key(pem: Union[str, bytes]) -> ec.EllipticCurvePrivateKey:
    """
    Parse a PKCS#8 PEM private key as downloaded from the Apple developer portal

    Raises:
        KeyLoadError: the PEM is malformed or is not a P-256 private key
    """
    if isinstance(pem, str):
        pem = pem.encode("utf-8")

    try:
        private_key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError) as e:
        raise KeyLoadError(f"Could not parse APNs private key: {e}") from e

    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise KeyLoadError("APNs private key is not an elliptic-curve key")
    if not isinstance(private_key.curve, ec.SECP256R1):
        raise KeyLoadError(f"APNs private key must use P-256, got {private_key.curve.name}")

    return private_key


def load_private_key_file(path: Union[str, Path]) -> ec.EllipticCurvePrivateKey:
    """Read and parse a .p8 key file"""
    try:
        pem = Path(path).read_bytes()
    except OSError as e:
        logger.error(f"❌ Error reading APNs key file {path}: {e}")
        raise KeyLoadError(f"Could not read APNs private key file {path}: {e}") from e
    return load_private_key(pem)


class ES256Signer:
    """
    Signs token input with an ECDSA P-256 private key and SHA-256

    The signature comes back in the fixed 64-byte JWS form, not DER.
    """

    SIGNATURE_LENGTH = 64

    def __init__(self, private_key: ec.EllipticCurvePrivateKey):
        self._private_key = private_key
        self._algorithm = ECAlgorithm(ECAlgorithm.SHA256)

    @classmethod
    def from_pem(cls, pem: Union[str, bytes]) -> "ES256Signer":
        return cls(load_private_key(pem))

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ES256Signer":
        return cls(load_private_key_file(path))

    def sign(self, data: bytes) -> bytes:
        try:
            signature = self._algorithm.sign(data, self._private_key)
        except Exception as e:
            raise SigningFailed(f"ES256 signing failed: {e}") from e

        if len(signature) != self.SIGNATURE_LENGTH:
            raise SigningFailed(
                f"ES256 signature has unexpected length {len(signature)}"
            )
        return signature
