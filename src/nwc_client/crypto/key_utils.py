from __future__ import annotations

from cryptography.hazmat.primitives.asymmetric import ec

from ..domain.errors import InvalidPublicKeyError, InvalidSecretKeyError

# Order of the secp256k1 group
SECP256K1_ORDER = int(
    "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141", 16
)
KEY_HEX_LENGTH = 64


def load_private_key_from_hex(secret_key_hex: str) -> ec.EllipticCurvePrivateKey:
    """Load a secp256k1 private key from its 32-byte hex encoding."""
    if len(secret_key_hex) != KEY_HEX_LENGTH:
        raise InvalidSecretKeyError("Secret key must be 32 bytes of hex")
    try:
        value = int.from_bytes(bytes.fromhex(secret_key_hex), "big")
    except ValueError as e:
        raise InvalidSecretKeyError(f"Secret key is not valid hex: {e}") from e
    if not 0 < value < SECP256K1_ORDER:
        raise InvalidSecretKeyError("Secret key is out of range for secp256k1")
    return ec.derive_private_key(value, ec.SECP256K1())


def load_public_key_from_hex(public_key_hex: str) -> ec.EllipticCurvePublicKey:
    """Lift an x-only public key to the curve point with an even y coordinate."""
    if len(public_key_hex) != KEY_HEX_LENGTH:
        raise InvalidPublicKeyError("Public key must be 32 bytes of hex")
    try:
        encoded = b"\x02" + bytes.fromhex(public_key_hex)
        return ec.EllipticCurvePublicKey.from_encoded_point(ec.SECP256K1(), encoded)
    except ValueError as e:
        raise InvalidPublicKeyError(f"Invalid public key: {e}") from e


def public_key_to_hex(public_key: ec.EllipticCurvePublicKey) -> str:
    return public_key.public_numbers().x.to_bytes(32, "big").hex()


def derive_public_key(secret_key_hex: str) -> str:
    """Return the x-only public key (hex) belonging to a secret key."""
    return public_key_to_hex(load_private_key_from_hex(secret_key_hex).public_key())


def compute_shared_secret(public_key_hex: str, secret_key_hex: str) -> bytes:
    """Derive the NIP-04 shared secret: the unhashed x coordinate of the ECDH point.

    The value is the same from either side of the conversation.
    """
    private_key = load_private_key_from_hex(secret_key_hex)
    peer_public_key = load_public_key_from_hex(public_key_hex)
    return private_key.exchange(ec.ECDH(), peer_public_key)
