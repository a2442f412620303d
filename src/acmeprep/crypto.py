"""Account key helpers: JWK encoding, thumbprints and JWS signing."""

import base64
import hashlib
import json

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

# Type alias for private keys
PrivateKey = rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey

# curve name -> (JWK crv, JWS alg, coordinate size in bytes)
_CURVES: dict[str, tuple[str, str, int]] = {
    "secp256r1": ("P-256", "ES256", 32),
    "secp384r1": ("P-384", "ES384", 48),
}


def load_private_key_pem(pem_data: str, password: bytes | None = None) -> PrivateKey:
    """Load an account private key from PEM-encoded data.

    Args:
        pem_data: PEM-encoded private key string.
        password: Optional password for encrypted keys.

    Returns:
        RSA or ECDSA private key.

    Raises:
        ValueError: If PEM data is invalid, the password is wrong, or the
            key type is not usable for ACME.
    """
    try:
        key = serialization.load_pem_private_key(pem_data.encode("utf-8"), password=password)
    except TypeError as e:
        # Encrypted key loaded without a password
        raise ValueError("Invalid password or encrypted key requires password") from e
    except ValueError as e:
        raise ValueError(f"Invalid PEM data: {e}") from e

    if not isinstance(key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
        raise ValueError(f"Unsupported key type: {type(key).__name__}")
    return key


def base64url_encode(data: bytes) -> str:
    """Base64url encode without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _int_to_base64url(n: int, length: int | None = None) -> str:
    if length is None:
        length = max(1, (n.bit_length() + 7) // 8)
    return base64url_encode(n.to_bytes(length, byteorder="big"))


def _curve(key: ec.EllipticCurvePrivateKey) -> tuple[str, str, int]:
    name = key.curve.name
    if name not in _CURVES:
        raise ValueError(f"Unsupported curve: {name}")
    return _CURVES[name]


def get_jwk(key: PrivateKey) -> dict[str, str]:
    """Get the public JWK (RFC 7517) for an account key.

    Members are emitted in lexicographic order, which is also the
    canonical form required for thumbprints.
    """
    if isinstance(key, rsa.RSAPrivateKey):
        numbers = key.public_key().public_numbers()
        return {"e": _int_to_base64url(numbers.e), "kty": "RSA", "n": _int_to_base64url(numbers.n)}

    crv, _, size = _curve(key)
    numbers = key.public_key().public_numbers()
    return {
        "crv": crv,
        "kty": "EC",
        "x": _int_to_base64url(numbers.x, size),
        "y": _int_to_base64url(numbers.y, size),
    }


def key_thumbprint(key: PrivateKey) -> str:
    """Compute the JWK thumbprint of a key (RFC 7638).

    Args:
        key: Private key to compute thumbprint for.

    Returns:
        Base64url-encoded SHA-256 thumbprint.
    """
    canonical = json.dumps(get_jwk(key), sort_keys=True, separators=(",", ":"))
    return base64url_encode(hashlib.sha256(canonical.encode("utf-8")).digest())


def sign_jws(
    key: PrivateKey,
    payload: dict | str,
    url: str,
    nonce: str,
    kid: str | None = None,
) -> dict[str, str]:
    """Sign an ACME request body.

    Args:
        key: Account private key.
        payload: Payload to sign (dict for JSON, empty string for POST-as-GET).
        url: URL of the ACME endpoint.
        nonce: Replay nonce.
        kid: Account URL. If None, the public JWK is embedded instead.

    Returns:
        JWS in flattened JSON serialization (protected, payload, signature).
    """
    if isinstance(key, rsa.RSAPrivateKey):
        alg = "RS256"
    else:
        _, alg, _ = _curve(key)

    protected: dict[str, str | dict] = {"alg": alg, "nonce": nonce, "url": url}
    if kid:
        protected["kid"] = kid
    else:
        protected["jwk"] = get_jwk(key)

    protected_b64 = base64url_encode(json.dumps(protected, separators=(",", ":")).encode())
    payload_b64 = ""
    if payload != "":
        payload_b64 = base64url_encode(json.dumps(payload, separators=(",", ":")).encode())
    signing_input = f"{protected_b64}.{payload_b64}".encode()

    if isinstance(key, rsa.RSAPrivateKey):
        signature = key.sign(signing_input, padding.PKCS1v15(), hashes.SHA256())
    else:
        # JWS wants fixed-size r||s rather than DER
        _, _, size = _curve(key)
        digest = hashes.SHA384() if alg == "ES384" else hashes.SHA256()
        r, s = decode_dss_signature(key.sign(signing_input, ec.ECDSA(digest)))
        signature = r.to_bytes(size, byteorder="big") + s.to_bytes(size, byteorder="big")

    return {
        "protected": protected_b64,
        "payload": payload_b64,
        "signature": base64url_encode(signature),
    }
