"""Contract record, confidential payload and merged view."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContractStatus(str, Enum):
    """Contract lifecycle status."""

    PENDING = "pending"  # Waiting for the receiver
    SIGNED = "signed"  # Receiver signed; terminal
    EXPIRED = "expired"  # Derived at read time, never stored


class PartyDetails(BaseModel):
    """Sender or receiver details kept inside the encrypted payload."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    full_name: str = Field(default="", alias="fullName")
    designation: str = ""
    company_name: str = Field(default="", alias="companyName")
    phone: str = ""
    email: str = ""
    address: str = ""


class ConfidentialPayload(BaseModel):
    """The part of a contract that is only ever stored encrypted."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    content: str = ""
    sender: PartyDetails = Field(default_factory=PartyDetails)
    receiver: PartyDetails = Field(default_factory=PartyDetails)


class ContractRecord(BaseModel):
    """A contract as persisted in the document store.

    Everything here is plaintext except `encrypted_data`. Field names on the
    wire are camelCase so records written by browser clients load unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = ""
    title: str = ""
    created_by: str = Field(default="", alias="createdBy")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    sender_email: str = Field(default="", alias="senderEmail")
    receiver_email: str = Field(default="", alias="receiverEmail")
    status: ContractStatus = ContractStatus.PENDING
    encrypted_data: str = Field(default="", alias="encryptedData")
    version: int = 0
    expiry_date: datetime | None = Field(default=None, alias="expiryDate")
    last_edited_at: datetime | None = Field(default=None, alias="lastEditedAt")
    last_edited_by: str | None = Field(default=None, alias="lastEditedBy")
    signed_by: str | None = Field(default=None, alias="signedBy")
    signed_at: datetime | None = Field(default=None, alias="signedAt")

    @classmethod
    def from_document(cls, contract_id: str, data: dict[str, Any]) -> "ContractRecord":
        return cls.model_validate({**data, "id": contract_id})

    def to_document(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible store document (without the id)."""
        return self.model_dump(mode="json", by_alias=True, exclude={"id"}, exclude_none=True)

    def is_expired(self, now: datetime | None = None) -> bool:
        if self.expiry_date is None:
            return False
        now = now or datetime.now(UTC)
        expiry = self.expiry_date
        if expiry.tzinfo is None:
            expiry = expiry.replace(tzinfo=UTC)
        return expiry <= now

    def effective_status(self, now: datetime | None = None) -> ContractStatus:
        """Stored status with expiry applied; only pending contracts expire."""
        if self.status is ContractStatus.PENDING and self.is_expired(now):
            return ContractStatus.EXPIRED
        return self.status


class ContractView(BaseModel):
    """Plaintext record merged with its decrypted payload."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str
    title: str = ""
    created_by: str = Field(default="", alias="createdBy")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    sender_email: str = Field(default="", alias="senderEmail")
    receiver_email: str = Field(default="", alias="receiverEmail")
    status: ContractStatus
    version: int = 0
    expiry_date: datetime | None = Field(default=None, alias="expiryDate")
    last_edited_at: datetime | None = Field(default=None, alias="lastEditedAt")
    last_edited_by: str | None = Field(default=None, alias="lastEditedBy")
    signed_by: str | None = Field(default=None, alias="signedBy")
    signed_at: datetime | None = Field(default=None, alias="signedAt")
    content: str = ""
    sender: PartyDetails = Field(default_factory=PartyDetails)
    receiver: PartyDetails = Field(default_factory=PartyDetails)

    @classmethod
    def merge(
        cls,
        record: ContractRecord,
        payload: ConfidentialPayload,
        now: datetime | None = None,
    ) -> "ContractView":
        """Spread the decrypted payload over the plaintext fields.

        Keys present in both are not reconciled; the payload's copy wins.
        """
        plaintext = record.model_dump(by_alias=True, exclude={"encrypted_data"})
        plaintext["status"] = record.effective_status(now)
        return cls.model_validate({**plaintext, **payload.model_dump(by_alias=True)})
