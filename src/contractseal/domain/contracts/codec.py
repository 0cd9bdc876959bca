"""Confidential payload codec: canonical JSON + passphrase encryption."""

import json

from pydantic import ValidationError as PydanticValidationError

from contractseal.config import Settings
from contractseal.domain.contracts.models import ConfidentialPayload
from contractseal.shared.crypto import (
    DEFAULT_PBKDF2_ITERATIONS,
    CipherScheme,
    decrypt_text,
    encrypt_text,
)
from contractseal.shared.exceptions import MalformedPayloadError


def serialize_payload(payload: ConfidentialPayload) -> str:
    """Canonical text encoding: compact JSON with camelCase keys."""
    return payload.model_dump_json(by_alias=True)


def deserialize_payload(text: str) -> ConfidentialPayload:
    """Parse canonical text back into a payload.

    Raises:
        MalformedPayloadError: Text is not JSON or not a payload object.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedPayloadError("Decrypted payload is not valid JSON") from e

    if not isinstance(data, dict):
        raise MalformedPayloadError(
            "Decrypted payload is not an object",
            details={"type": type(data).__name__},
        )

    try:
        return ConfidentialPayload.model_validate(data)
    except PydanticValidationError as e:
        raise MalformedPayloadError(
            "Decrypted payload does not match the contract payload shape",
            details={
                "errors": e.errors(include_url=False, include_context=False, include_input=False)
            },
        ) from e


class PayloadCodec:
    """Encrypts and decrypts confidential payloads under a derived key.

    The cipher used for new ciphertexts is configurable; decryption reads the
    cipher from the token itself, so records written under either scheme stay
    readable.
    """

    def __init__(
        self,
        scheme: CipherScheme = CipherScheme.AES_PASSPHRASE,
        *,
        pbkdf2_iterations: int = DEFAULT_PBKDF2_ITERATIONS,
    ) -> None:
        self.scheme = scheme
        self.pbkdf2_iterations = pbkdf2_iterations

    def encrypt(self, payload: ConfidentialPayload, key: str) -> str:
        return encrypt_text(
            serialize_payload(payload),
            key,
            self.scheme,
            iterations=self.pbkdf2_iterations,
        )

    def decrypt(self, ciphertext: str, key: str) -> ConfidentialPayload:
        """Recover a payload.

        Raises:
            DecryptionError: Wrong key or corrupted ciphertext.
            MalformedPayloadError: Decrypted text is not a payload.
        """
        return deserialize_payload(decrypt_text(ciphertext, key))


def build_payload_codec(settings: Settings) -> PayloadCodec:
    """Codec writing new ciphertexts with the configured CONTRACT_CIPHER."""
    return PayloadCodec(
        CipherScheme(settings.contract_cipher),
        pbkdf2_iterations=settings.pbkdf2_iterations,
    )
