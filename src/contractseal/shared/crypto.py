"""Passphrase-based ciphers for contract payloads.

Two token formats are supported, told apart by their prefix:

- ``aes-passphrase``: OpenSSL ``Salted__`` format. The passphrase and a random
  8-byte salt go through EVP_BytesToKey (MD5, one round) to give an AES-256 key
  and a CBC IV; the plaintext is PKCS7 padded and the result is
  ``base64("Salted__" + salt + ciphertext)``. This is what browser clients
  have always written, so every stored record can be read with it.
- ``fernet-pbkdf2``: ``fernet-pbkdf2$<iterations>$<salt>$<fernet token>``.
  The passphrase is stretched with PBKDF2-HMAC-SHA256 over a random 16-byte
  salt and the plaintext is sealed with Fernet (AES-128-CBC + HMAC-SHA256).

Both formats are self-contained: the token plus the passphrase is all that is
needed to decrypt.
"""

import base64
import binascii
import hashlib
import logging
import os
from enum import Enum

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from contractseal.shared.exceptions import DecryptionError

logger = logging.getLogger(__name__)

OPENSSL_MAGIC = b"Salted__"
# base64 of OPENSSL_MAGIC followed by any salt byte always starts with this
OPENSSL_TOKEN_PREFIX = "U2FsdGVkX1"
FERNET_TOKEN_PREFIX = "fernet-pbkdf2$"

_AES_KEY_SIZE = 32
_AES_BLOCK_SIZE = 16
_OPENSSL_SALT_SIZE = 8
_PBKDF2_SALT_SIZE = 16
DEFAULT_PBKDF2_ITERATIONS = 600_000
# Tokens carry their own iteration count; anything above this is refused.
MAX_PBKDF2_ITERATIONS = 10 * DEFAULT_PBKDF2_ITERATIONS


class CipherScheme(str, Enum):
    """Token formats understood by encrypt_text / decrypt_text."""

    AES_PASSPHRASE = "aes-passphrase"
    FERNET_PBKDF2 = "fernet-pbkdf2"


def detect_scheme(token: str) -> CipherScheme | None:
    """Return the scheme a token was written with, or None if unrecognised."""
    if not token:
        return None
    if token.startswith(OPENSSL_TOKEN_PREFIX):
        return CipherScheme.AES_PASSPHRASE
    if token.startswith(FERNET_TOKEN_PREFIX):
        return CipherScheme.FERNET_PBKDF2
    return None


def encrypt_text(
    plaintext: str,
    passphrase: str,
    scheme: CipherScheme = CipherScheme.AES_PASSPHRASE,
    *,
    iterations: int = DEFAULT_PBKDF2_ITERATIONS,
) -> str:
    """Encrypt text under a passphrase.

    Args:
        plaintext: Text to encrypt (UTF-8 encoded before encryption)
        passphrase: Passphrase; the cipher derives its own key and IV from it
        scheme: Token format to produce
        iterations: PBKDF2 rounds, only used by FERNET_PBKDF2

    Returns:
        ASCII token safe to store as a single document field
    """
    data = plaintext.encode("utf-8")
    if scheme is CipherScheme.FERNET_PBKDF2:
        return _fernet_encrypt(data, passphrase, iterations)
    return _openssl_encrypt(data, passphrase)


def decrypt_text(token: str, passphrase: str) -> str:
    """Decrypt a token from encrypt_text.

    Raises:
        DecryptionError: Wrong passphrase, corrupted token or unknown format.
            The cipher cannot tell these apart.
    """
    scheme = detect_scheme(token)
    if scheme is CipherScheme.AES_PASSPHRASE:
        data = _openssl_decrypt(token, passphrase)
    elif scheme is CipherScheme.FERNET_PBKDF2:
        data = _fernet_decrypt(token, passphrase)
    else:
        raise DecryptionError("Unrecognised ciphertext format")

    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        # A wrong key that happens to leave valid padding yields garbage bytes.
        logger.warning("Decrypted bytes are not UTF-8 - wrong key or corrupted token")
        raise DecryptionError("Decryption failed - wrong key or corrupted data") from e


# ----- OpenSSL "Salted__" (EVP_BytesToKey + AES-256-CBC) -----


def evp_bytes_to_key(
    passphrase: bytes,
    salt: bytes,
    key_size: int = _AES_KEY_SIZE,
    iv_size: int = _AES_BLOCK_SIZE,
) -> tuple[bytes, bytes]:
    """OpenSSL's EVP_BytesToKey with MD5 and a single iteration."""
    derived = b""
    block = b""
    while len(derived) < key_size + iv_size:
        block = hashlib.md5(block + passphrase + salt).digest()
        derived += block
    return derived[:key_size], derived[key_size : key_size + iv_size]


def _openssl_encrypt(data: bytes, passphrase: str) -> str:
    salt = os.urandom(_OPENSSL_SALT_SIZE)
    key, iv = evp_bytes_to_key(passphrase.encode("utf-8"), salt)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(data) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    return base64.b64encode(OPENSSL_MAGIC + salt + ciphertext).decode("ascii")


def _openssl_decrypt(token: str, passphrase: str) -> bytes:
    try:
        raw = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecryptionError("Ciphertext is not valid base64") from e

    header_size = len(OPENSSL_MAGIC) + _OPENSSL_SALT_SIZE
    body = raw[header_size:]
    if not raw.startswith(OPENSSL_MAGIC) or not body or len(body) % _AES_BLOCK_SIZE:
        raise DecryptionError("Ciphertext is truncated or has no salt header")

    salt = raw[len(OPENSSL_MAGIC) : header_size]
    key, iv = evp_bytes_to_key(passphrase.encode("utf-8"), salt)

    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(body) + decryptor.finalize()

    try:
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        logger.warning("Failed to decrypt payload - invalid padding or wrong key")
        raise DecryptionError("Decryption failed - wrong key or corrupted data") from e


# ----- PBKDF2 + Fernet -----


def _fernet_for(passphrase: str, salt: bytes, iterations: int) -> Fernet:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )
    derived_key = kdf.derive(passphrase.encode("utf-8"))
    return Fernet(base64.urlsafe_b64encode(derived_key))


def _fernet_encrypt(data: bytes, passphrase: str, iterations: int) -> str:
    salt = os.urandom(_PBKDF2_SALT_SIZE)
    token = _fernet_for(passphrase, salt, iterations).encrypt(data).decode("ascii")
    salt_b64 = base64.urlsafe_b64encode(salt).decode("ascii")
    return f"{FERNET_TOKEN_PREFIX}{iterations}${salt_b64}${token}"


def _fernet_decrypt(token: str, passphrase: str) -> bytes:
    try:
        iterations_str, salt_b64, fernet_token = token[len(FERNET_TOKEN_PREFIX) :].split("$")
        iterations = int(iterations_str)
        salt = base64.urlsafe_b64decode(salt_b64.encode("ascii"))
        fernet_bytes = fernet_token.encode("ascii")
    except (ValueError, binascii.Error) as e:
        raise DecryptionError("Ciphertext header is malformed") from e
    if iterations < 1 or not salt:
        raise DecryptionError("Ciphertext header is malformed")
    if iterations > MAX_PBKDF2_ITERATIONS:
        raise DecryptionError(
            "Ciphertext iteration count is too high",
            details={"iterations": iterations, "max_iterations": MAX_PBKDF2_ITERATIONS},
        )

    try:
        return _fernet_for(passphrase, salt, iterations).decrypt(fernet_bytes)
    except InvalidToken as e:
        logger.warning("Failed to decrypt payload - invalid token or wrong key")
        raise DecryptionError("Decryption failed - wrong key or corrupted data") from e
