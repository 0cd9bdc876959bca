"""Contract key derivation.

A contract's payload key is the creator's user id immediately followed by the
receiver's email address. Both parties can always rebuild it from the record's
plaintext fields, which is what lets either of them open the contract. It is
also why the key is only as secret as those two values.

Existing ciphertexts are permanently bound to the pair they were created with:
changing either input for a stored contract makes it undecryptable.
"""

from contractseal.domain.contracts.models import ContractRecord
from contractseal.shared.logging import get_logger

logger = get_logger(__name__)


def derive_contract_key(created_by: str | None, receiver_email: str | None) -> str:
    """Derive the payload passphrase for a contract.

    Pure and deterministic; order sensitive. A missing or empty input is not
    an error: the key silently degrades to the other value alone.
    """
    if not created_by or not receiver_email:
        logger.warning(
            "partial_contract_key",
            has_creator=bool(created_by),
            has_receiver=bool(receiver_email),
        )
    return (created_by or "") + (receiver_email or "")


def key_for_record(record: ContractRecord) -> str:
    """Rebuild the key of a stored contract from its plaintext fields."""
    return derive_contract_key(record.created_by, record.receiver_email)
