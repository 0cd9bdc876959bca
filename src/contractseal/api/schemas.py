"""Request/response schemas for the contract API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from contractseal.domain.contracts.models import (
    ContractRecord,
    ContractStatus,
    PartyDetails,
)
from contractseal.domain.contracts.templates import ContractSection, WebDevelopmentTerms


class ContractCreateRequest(BaseModel):
    """Create a contract. The sender is the authenticated principal."""

    model_config = ConfigDict(populate_by_name=True)

    title: str
    content: str
    sender: PartyDetails = Field(default_factory=PartyDetails)
    receiver: PartyDetails
    expiry_date: datetime | None = Field(default=None, alias="expiryDate")


class ContractEditRequest(BaseModel):
    """Partial edit; omitted fields keep their current value."""

    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    content: str | None = None
    sender: PartyDetails | None = None
    receiver: PartyDetails | None = None
    expiry_date: datetime | None = Field(default=None, alias="expiryDate")
    expected_version: int | None = Field(default=None, alias="expectedVersion")


class ContractSummaryResponse(BaseModel):
    """Plaintext listing entry; never includes the payload."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    sender_email: str = Field(serialization_alias="senderEmail")
    receiver_email: str = Field(serialization_alias="receiverEmail")
    status: ContractStatus
    version: int
    created_at: datetime | None = Field(serialization_alias="createdAt")
    expiry_date: datetime | None = Field(serialization_alias="expiryDate")

    @classmethod
    def from_record(
        cls, record: ContractRecord, now: datetime | None = None
    ) -> "ContractSummaryResponse":
        return cls(
            id=record.id,
            title=record.title,
            sender_email=record.sender_email,
            receiver_email=record.receiver_email,
            status=record.effective_status(now),
            version=record.version,
            created_at=record.created_at,
            expiry_date=record.expiry_date,
        )


class ContractListResponse(BaseModel):
    items: list[ContractSummaryResponse]
    total: int


class CreateContractResponse(BaseModel):
    """Created contract id plus the link to send to the receiver."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    status: ContractStatus
    share_link: str = Field(serialization_alias="shareLink")


class SignContractResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    status: ContractStatus
    signed_by: str | None = Field(serialization_alias="signedBy")
    signed_at: datetime | None = Field(serialization_alias="signedAt")


class ShareLinkResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    share_link: str = Field(serialization_alias="shareLink")


class ContractFromTemplateRequest(WebDevelopmentTerms):
    """Web development template terms; omitted sections use the defaults."""

    sections: list[ContractSection] | None = None
    expiry_date: datetime | None = Field(default=None, alias="expiryDate")


class TemplateResponse(BaseModel):
    """Default clauses a client can edit before creating from the template."""

    name: str
    sections: list[ContractSection]
