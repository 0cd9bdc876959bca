"""Contract API routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from contractseal.api.middleware.auth import CurrentPrincipal
from contractseal.api.ratelimit import limiter, rate_limit_write
from contractseal.api.schemas import (
    ContractCreateRequest,
    ContractEditRequest,
    ContractFromTemplateRequest,
    ContractListResponse,
    ContractSummaryResponse,
    CreateContractResponse,
    ShareLinkResponse,
    SignContractResponse,
    TemplateResponse,
)
from contractseal.config import get_settings
from contractseal.domain.contracts.codec import build_payload_codec
from contractseal.domain.contracts.models import ConfidentialPayload, ContractView
from contractseal.domain.contracts.services import ContractService
from contractseal.domain.contracts.templates import default_sections

router = APIRouter(prefix="/contracts", tags=["Contracts"])


# ----- Dependencies -----


def get_contract_service(request: Request) -> ContractService:
    """Contract service over the app's shared document store."""
    settings = get_settings()
    return ContractService(
        store=request.app.state.document_store,
        codec=build_payload_codec(settings),
        collection=settings.contracts_collection,
        share_base_url=settings.share_base_url,
    )


ContractServiceDep = Annotated[ContractService, Depends(get_contract_service)]


# ----- Routes -----


@router.post("", response_model=CreateContractResponse, status_code=201)
@limiter.limit(rate_limit_write)
async def create_contract(
    request: Request,
    body: ContractCreateRequest,
    principal: CurrentPrincipal,
    service: ContractServiceDep,
) -> CreateContractResponse:
    """Encrypt and store a new contract; returns the link to share."""
    record = await service.create_contract(
        principal,
        title=body.title,
        payload=ConfidentialPayload(
            content=body.content,
            sender=body.sender,
            receiver=body.receiver,
        ),
        expiry_date=body.expiry_date,
    )
    return CreateContractResponse(
        id=record.id,
        status=record.status,
        share_link=service.share_link(record.id),
    )


@router.get("/templates/web-development", response_model=TemplateResponse)
async def get_web_development_template(principal: CurrentPrincipal) -> TemplateResponse:
    """Default clauses for the web development template."""
    _ = principal
    return TemplateResponse(name="web-development", sections=default_sections())


@router.post("/from-template", response_model=CreateContractResponse, status_code=201)
@limiter.limit(rate_limit_write)
async def create_contract_from_template(
    request: Request,
    body: ContractFromTemplateRequest,
    principal: CurrentPrincipal,
    service: ContractServiceDep,
) -> CreateContractResponse:
    """Render the web development template and store it encrypted."""
    record = await service.create_from_template(
        principal,
        terms=body,
        sections=body.sections,
        expiry_date=body.expiry_date,
    )
    return CreateContractResponse(
        id=record.id,
        status=record.status,
        share_link=service.share_link(record.id),
    )


@router.get("/sent", response_model=ContractListResponse)
async def list_sent_contracts(
    principal: CurrentPrincipal,
    service: ContractServiceDep,
) -> ContractListResponse:
    """Contracts the caller created (dashboard)."""
    records = await service.list_sent_contracts(principal)
    items = [ContractSummaryResponse.from_record(r, service.clock()) for r in records]
    return ContractListResponse(items=items, total=len(items))


@router.get("/received", response_model=ContractListResponse)
async def list_received_contracts(
    principal: CurrentPrincipal,
    service: ContractServiceDep,
) -> ContractListResponse:
    """Contracts addressed to the caller."""
    records = await service.list_received_contracts(principal)
    items = [ContractSummaryResponse.from_record(r, service.clock()) for r in records]
    return ContractListResponse(items=items, total=len(items))


@router.get("/{contract_id}", response_model=ContractView)
async def get_contract(
    contract_id: str,
    principal: CurrentPrincipal,
    service: ContractServiceDep,
) -> ContractView:
    """Decrypted contract, for its sender or receiver only."""
    return await service.get_contract(principal, contract_id)


@router.patch("/{contract_id}", response_model=ContractView)
@limiter.limit(rate_limit_write)
async def edit_contract(
    request: Request,
    contract_id: str,
    body: ContractEditRequest,
    principal: CurrentPrincipal,
    service: ContractServiceDep,
) -> ContractView:
    """Write a new revision of a pending contract (sender only)."""
    return await service.edit_contract(
        principal,
        contract_id,
        title=body.title,
        content=body.content,
        sender=body.sender,
        receiver=body.receiver,
        expiry_date=body.expiry_date,
        expected_version=body.expected_version,
    )


@router.post("/{contract_id}/sign", response_model=SignContractResponse)
@limiter.limit(rate_limit_write)
async def sign_contract(
    request: Request,
    contract_id: str,
    principal: CurrentPrincipal,
    service: ContractServiceDep,
) -> SignContractResponse:
    """Sign a pending contract (receiver only)."""
    record = await service.sign_contract(principal, contract_id)
    return SignContractResponse(
        id=contract_id,
        status=record.status,
        signed_by=record.signed_by,
        signed_at=record.signed_at,
    )


@router.get("/{contract_id}/share-link", response_model=ShareLinkResponse)
async def get_share_link(
    contract_id: str,
    principal: CurrentPrincipal,
    service: ContractServiceDep,
) -> ShareLinkResponse:
    """Link for the receiver. Only parties to the contract may ask for it."""
    # Reading the contract enforces the party check.
    await service.get_contract(principal, contract_id)
    return ShareLinkResponse(share_link=service.share_link(contract_id))
