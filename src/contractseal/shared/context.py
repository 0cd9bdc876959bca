"""Principal passed explicitly into every contract operation."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """The signed-in party calling a contract operation.

    `id` is the identity provider's stable user id (it becomes part of the
    contract key for contracts this principal creates). `email` is compared
    verbatim against the plaintext party emails stored on a contract.
    """

    id: str
    email: str
    email_verified: bool = False
    full_name: str | None = None

    def is_party_to(self, sender_email: str | None, receiver_email: str | None) -> bool:
        return bool(self.email) and self.email in (sender_email, receiver_email)
