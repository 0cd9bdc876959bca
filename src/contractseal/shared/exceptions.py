"""Custom exception hierarchy for contractseal."""

from typing import Any


class ContractSealError(Exception):
    """Base exception for all contractseal errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ----- Authentication Errors -----


class AuthenticationError(ContractSealError):
    """Authentication failed."""

    pass


class TokenExpiredError(AuthenticationError):
    """JWT token has expired."""

    pass


class TokenInvalidError(AuthenticationError):
    """JWT token is invalid."""

    pass


class EmailNotVerifiedError(AuthenticationError):
    """Principal has not verified their email address."""

    def __init__(self, email: str) -> None:
        super().__init__(
            message="Please verify your email before working with contracts",
            details={"email": email},
        )


class UnauthorizedError(ContractSealError):
    """Principal is not allowed to perform this action on the contract."""

    pass


# ----- Resource Errors -----


class NotFoundError(ContractSealError):
    """Requested resource was not found."""

    def __init__(self, resource: str, identifier: str) -> None:
        super().__init__(
            message=f"{resource} not found",
            details={"resource": resource, "identifier": identifier},
        )


class ConflictError(ContractSealError):
    """Stored record changed since it was read."""

    pass


class ContractStateError(ConflictError):
    """Operation is not allowed in the contract's current status."""

    def __init__(self, contract_id: str, status: str, action: str) -> None:
        super().__init__(
            message=f"Cannot {action} a contract that is {status}",
            details={"contract_id": contract_id, "status": status, "action": action},
        )


# ----- Validation Errors -----


class ValidationError(ContractSealError):
    """Input validation failed."""

    pass


# ----- Payload Errors -----


class PayloadError(ContractSealError):
    """Confidential payload could not be recovered."""

    pass


class DecryptionError(PayloadError):
    """Ciphertext could not be decrypted (wrong key, corrupted or unknown format)."""

    pass


class MalformedPayloadError(PayloadError):
    """Decrypted text is not a valid confidential payload."""

    pass


# ----- External Service Errors -----


class ExternalServiceError(ContractSealError):
    """Error from an external service."""

    pass


class StoreError(ExternalServiceError):
    """Error from the document store."""

    pass
