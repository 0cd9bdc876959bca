"""Contract service - core business logic.

Every operation takes the calling principal explicitly. The service never
holds session state and never retries: each failure is reported to the caller
as the final result of that operation.
"""

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from contractseal.domain.contracts.keys import derive_contract_key, key_for_record
from contractseal.domain.contracts.models import (
    ConfidentialPayload,
    ContractRecord,
    ContractStatus,
    ContractView,
    PartyDetails,
)
from contractseal.domain.contracts.ports import DocumentStorePort, PayloadCodecPort
from contractseal.domain.contracts.templates import (
    DEVELOPER_DESIGNATION,
    ContractSection,
    WebDevelopmentTerms,
    default_sections,
    render_web_development_contract,
    template_title,
)
from contractseal.observability.metrics import record_contract_operation
from contractseal.shared.context import Principal
from contractseal.shared.exceptions import (
    ConflictError,
    ContractStateError,
    EmailNotVerifiedError,
    NotFoundError,
    PayloadError,
    UnauthorizedError,
    ValidationError,
)
from contractseal.shared.logging import get_logger

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ContractService:
    """Create, read, edit and sign contracts with encrypted payloads."""

    def __init__(
        self,
        store: DocumentStorePort,
        codec: PayloadCodecPort,
        *,
        collection: str = "contracts",
        share_base_url: str = "",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.codec = codec
        self.collection = collection
        self.share_base_url = share_base_url.rstrip("/")
        self.clock = clock

    # ----- Create -----

    async def create_contract(
        self,
        principal: Principal,
        *,
        title: str,
        payload: ConfidentialPayload,
        expiry_date: datetime | None = None,
    ) -> ContractRecord:
        """Encrypt a new contract and store it as pending.

        The sender is always the calling principal. The payload's sender email
        and name are filled in from the principal when left blank.
        """
        self._require_verified(principal)

        payload = payload.model_copy(deep=True)
        if not payload.sender.email:
            payload.sender.email = principal.email
        if not payload.sender.full_name and principal.full_name:
            payload.sender.full_name = principal.full_name
        self._validate_new_contract(principal, title, payload)

        key = derive_contract_key(principal.id, payload.receiver.email)
        now = self.clock()
        record = ContractRecord(
            title=title,
            created_by=principal.id,
            created_at=now,
            sender_email=principal.email,
            receiver_email=payload.receiver.email,
            status=ContractStatus.PENDING,
            encrypted_data=self.codec.encrypt(payload, key),
            expiry_date=expiry_date,
        )

        # First revision carries no version field; readers treat it as 0.
        document = record.to_document()
        document.pop("version", None)
        record.id = await self.store.put(self.collection, document)

        record_contract_operation("create", "success")
        logger.info(
            "contract_created",
            contract_id=record.id,
            created_by=principal.id,
            has_expiry=expiry_date is not None,
        )
        return record

    async def create_from_template(
        self,
        principal: Principal,
        *,
        terms: WebDevelopmentTerms,
        sections: list[ContractSection] | None = None,
        expiry_date: datetime | None = None,
    ) -> ContractRecord:
        """Render the web development template and create it as a contract.

        The developer is the calling principal and the client is the receiver.
        `sections` replaces the default clause list when given.
        """
        self._require_verified(principal)
        if not terms.developer_email:
            terms = terms.model_copy(update={"developer_email": principal.email})
        if sections is None:
            sections = default_sections()

        content = render_web_development_contract(terms, sections, self.clock())
        payload = ConfidentialPayload(
            content=content,
            sender=PartyDetails(
                full_name=terms.developer_name,
                designation=DEVELOPER_DESIGNATION,
                address=terms.developer_address,
                email=terms.developer_email,
            ),
            receiver=PartyDetails(
                full_name=terms.client_name,
                address=terms.client_address,
                email=terms.client_email,
            ),
        )
        return await self.create_contract(
            principal,
            title=template_title(terms),
            payload=payload,
            expiry_date=expiry_date,
        )

    def _validate_new_contract(
        self, principal: Principal, title: str, payload: ConfidentialPayload
    ) -> None:
        missing = [
            name
            for name, value in (
                ("title", title),
                ("content", payload.content),
                ("receiver.email", payload.receiver.email),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ValidationError(
                "Please fill in all required fields",
                details={"missing": missing},
            )
        if payload.sender.email != principal.email:
            raise ValidationError(
                "Sender email must be the email of the signed-in user",
                details={"sender_email": payload.sender.email},
            )

    # ----- Read -----

    async def get_contract(self, principal: Principal, contract_id: str) -> ContractView:
        """Fetch, authorize and decrypt a contract.

        Only the two parties named on the record may read it. The check runs
        against the plaintext emails before any decryption is attempted.
        """
        self._require_verified(principal)
        record, _ = await self._load(contract_id)
        self._require_party(principal, record)
        payload = self._decrypt(record)
        return ContractView.merge(record, payload, self.clock())

    async def list_sent_contracts(self, principal: Principal) -> list[ContractRecord]:
        """Contracts created by the principal, newest first. Nothing is decrypted."""
        self._require_verified(principal)
        rows = await self.store.query(
            self.collection, "createdBy", principal.id, order_by="createdAt", descending=True
        )
        return [ContractRecord.from_document(id, data) for id, data in rows]

    async def list_received_contracts(self, principal: Principal) -> list[ContractRecord]:
        """Contracts addressed to the principal's email, newest first."""
        self._require_verified(principal)
        rows = await self.store.query(
            self.collection,
            "receiverEmail",
            principal.email,
            order_by="createdAt",
            descending=True,
        )
        return [ContractRecord.from_document(id, data) for id, data in rows]

    def share_link(self, contract_id: str) -> str:
        return f"{self.share_base_url}/contract/{contract_id}"

    # ----- Edit -----

    async def edit_contract(
        self,
        principal: Principal,
        contract_id: str,
        *,
        title: str | None = None,
        content: str | None = None,
        sender: PartyDetails | None = None,
        receiver: PartyDetails | None = None,
        expiry_date: datetime | None = None,
        expected_version: int | None = None,
    ) -> ContractView:
        """Write a new revision of a pending contract.

        The full payload is re-encrypted under the unchanged key and stored
        with version + 1. The write is conditional on the version read here,
        so a concurrent edit surfaces as ConflictError instead of being lost.
        """
        self._require_verified(principal)
        record, document = await self._load(contract_id)

        if principal.email != record.sender_email:
            logger.warning(
                "contract_edit_denied", contract_id=contract_id, principal_id=principal.id
            )
            raise UnauthorizedError(
                "Only the sender can edit this contract",
                details={"contract_id": contract_id},
            )
        status = record.effective_status(self.clock())
        if status is not ContractStatus.PENDING:
            raise ContractStateError(contract_id, status.value, "edit")
        if expected_version is not None and expected_version != record.version:
            record_contract_operation("edit", "conflict")
            raise ConflictError(
                "Contract was changed by someone else",
                details={
                    "contract_id": contract_id,
                    "expected_version": expected_version,
                    "current_version": record.version,
                },
            )

        payload = self._decrypt(record)
        if content is not None:
            payload.content = content
        if sender is not None:
            if sender.email and sender.email != record.sender_email:
                raise ValidationError(
                    "The sender of a contract cannot be changed",
                    details={"sender_email": sender.email},
                )
            payload.sender = sender.model_copy(update={"email": record.sender_email})
        if receiver is not None:
            if receiver.email and receiver.email != record.receiver_email:
                # The receiver email is half of the key; changing it would
                # strand every existing ciphertext.
                raise ValidationError(
                    "The receiver of a contract cannot be changed",
                    details={"receiver_email": receiver.email},
                )
            payload.receiver = receiver.model_copy(update={"email": record.receiver_email})
        if title is not None and not title.strip():
            raise ValidationError("Title cannot be empty", details={"missing": ["title"]})

        fields: dict[str, Any] = {
            "encryptedData": self.codec.encrypt(payload, key_for_record(record)),
            "version": record.version + 1,
            "lastEditedAt": self.clock().isoformat(),
            "lastEditedBy": principal.id,
        }
        if title is not None:
            fields["title"] = title
        if expiry_date is not None:
            fields["expiryDate"] = expiry_date.isoformat()

        try:
            await self.store.update_fields(
                self.collection,
                contract_id,
                fields,
                expected={"version": document.get("version")},
            )
        except ConflictError:
            record_contract_operation("edit", "conflict")
            logger.warning(
                "contract_edit_conflict", contract_id=contract_id, base_version=record.version
            )
            raise

        record_contract_operation("edit", "success")
        logger.info("contract_edited", contract_id=contract_id, version=record.version + 1)

        return await self.get_contract(principal, contract_id)

    # ----- Sign -----

    async def sign_contract(self, principal: Principal, contract_id: str) -> ContractRecord:
        """Mark a pending contract as signed by its receiver."""
        self._require_verified(principal)
        record, _ = await self._load(contract_id)

        if principal.email != record.receiver_email:
            logger.warning(
                "contract_sign_denied", contract_id=contract_id, principal_id=principal.id
            )
            raise UnauthorizedError(
                "You are not authorized to sign this contract",
                details={"contract_id": contract_id},
            )
        status = record.effective_status(self.clock())
        if status is not ContractStatus.PENDING:
            raise ContractStateError(contract_id, status.value, "sign")

        signed_at = self.clock()
        await self.store.update_fields(
            self.collection,
            contract_id,
            {
                "status": ContractStatus.SIGNED.value,
                "signedBy": principal.id,
                "signedAt": signed_at.isoformat(),
            },
            expected={"status": ContractStatus.PENDING.value},
        )

        record_contract_operation("sign", "success")
        logger.info("contract_signed", contract_id=contract_id, signed_by=principal.id)

        return record.model_copy(
            update={
                "status": ContractStatus.SIGNED,
                "signed_by": principal.id,
                "signed_at": signed_at,
            }
        )

    # ----- Helpers -----

    def _require_verified(self, principal: Principal) -> None:
        if not principal.email_verified:
            raise EmailNotVerifiedError(principal.email)

    def _require_party(self, principal: Principal, record: ContractRecord) -> None:
        if not principal.is_party_to(record.sender_email, record.receiver_email):
            record_contract_operation("read", "unauthorized")
            logger.warning(
                "contract_access_denied", contract_id=record.id, principal_id=principal.id
            )
            raise UnauthorizedError(
                "You are not authorized to view this contract.",
                details={"contract_id": record.id},
            )

    async def _load(self, contract_id: str) -> tuple[ContractRecord, dict[str, Any]]:
        document = await self.store.get(self.collection, contract_id)
        if document is None:
            raise NotFoundError("Contract", contract_id)
        return ContractRecord.from_document(contract_id, document), document

    def _decrypt(self, record: ContractRecord) -> ConfidentialPayload:
        try:
            return self.codec.decrypt(record.encrypted_data, key_for_record(record))
        except PayloadError as e:
            record_contract_operation("read", "undecryptable")
            logger.error(
                "contract_decryption_failed",
                contract_id=record.id,
                error_type=type(e).__name__,
            )
            raise
