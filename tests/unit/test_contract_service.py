"""
Unit tests for the contract service.
"""
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from contractseal.domain.contracts.codec import PayloadCodec
from contractseal.domain.contracts.models import (
    ConfidentialPayload,
    ContractStatus,
    PartyDetails,
)
from contractseal.domain.contracts.services import ContractService
from contractseal.domain.contracts.templates import ContractSection, WebDevelopmentTerms
from contractseal.shared.context import Principal
from contractseal.shared.exceptions import (
    ConflictError,
    ContractStateError,
    EmailNotVerifiedError,
    MalformedPayloadError,
    NotFoundError,
    PayloadError,
    StoreError,
    UnauthorizedError,
    ValidationError,
)
from contractseal.shared.crypto import encrypt_text


async def _create(service, sender, payload, **kwargs):
    return await service.create_contract(sender, title="Web Development Contract", payload=payload, **kwargs)


class TestCreateContract:
    """Tests for contract creation."""

    @pytest.mark.asyncio
    async def test_stores_plaintext_metadata_and_ciphertext(self, service, store, sender, payload):
        record = await _create(service, sender, payload)

        document = await store.get("contracts", record.id)
        assert document["title"] == "Web Development Contract"
        assert document["createdBy"] == "uid1"
        assert document["senderEmail"] == "a@x.com"
        assert document["receiverEmail"] == "b@x.com"
        assert document["status"] == "pending"
        assert document["encryptedData"].startswith("U2FsdGVkX1")
        assert "Hi" not in document["encryptedData"]
        assert "content" not in document

    @pytest.mark.asyncio
    async def test_first_revision_has_no_version_field(self, service, store, sender, payload):
        record = await _create(service, sender, payload)

        document = await store.get("contracts", record.id)
        assert "version" not in document
        assert record.version == 0

    @pytest.mark.asyncio
    async def test_ciphertext_uses_creator_and_receiver_key(
        self, service, store, codec, sender, payload
    ):
        record = await _create(service, sender, payload)
        document = await store.get("contracts", record.id)

        decrypted = codec.decrypt(document["encryptedData"], "uid1b@x.com")
        assert decrypted.model_dump() == payload.model_dump()

    @pytest.mark.asyncio
    async def test_blank_sender_email_is_filled_from_principal(self, service, codec, store, sender):
        payload = ConfidentialPayload(content="Hi", receiver=PartyDetails(email="b@x.com"))

        record = await _create(service, sender, payload)

        document = await store.get("contracts", record.id)
        decrypted = codec.decrypt(document["encryptedData"], "uid1b@x.com")
        assert decrypted.sender.email == "a@x.com"
        # Caller's object is left untouched
        assert payload.sender.email == ""

    @pytest.mark.asyncio
    async def test_blank_sender_name_is_filled_from_principal(self, service, codec, store, payload):
        named = Principal(id="uid1", email="a@x.com", email_verified=True, full_name="Ada Sender")

        record = await _create(service, named, payload)

        document = await store.get("contracts", record.id)
        decrypted = codec.decrypt(document["encryptedData"], "uid1b@x.com")
        assert decrypted.sender.full_name == "Ada Sender"

    @pytest.mark.asyncio
    async def test_explicit_sender_name_wins(self, service, sender, full_payload):
        named = Principal(id="uid1", email="a@x.com", email_verified=True, full_name="Profile Name")

        record = await _create(service, named, full_payload)

        view = await service.get_contract(sender, record.id)
        assert view.sender.full_name == "Ada Sender"

    @pytest.mark.asyncio
    async def test_sender_email_must_match_principal(self, service, sender):
        payload = ConfidentialPayload(
            content="Hi",
            sender=PartyDetails(email="someone-else@x.com"),
            receiver=PartyDetails(email="b@x.com"),
        )

        with pytest.raises(ValidationError):
            await _create(service, sender, payload)

    @pytest.mark.asyncio
    async def test_required_fields(self, service, sender):
        payload = ConfidentialPayload(content="  ", receiver=PartyDetails(email=""))

        with pytest.raises(ValidationError) as exc_info:
            await service.create_contract(sender, title="", payload=payload)

        assert exc_info.value.details["missing"] == ["title", "content", "receiver.email"]

    @pytest.mark.asyncio
    async def test_unverified_principal_rejected(self, service, payload):
        unverified = Principal(id="uid1", email="a@x.com", email_verified=False)

        with pytest.raises(EmailNotVerifiedError):
            await _create(service, unverified, payload)

    @pytest.mark.asyncio
    async def test_share_link(self, service):
        assert service.share_link("abc") == "https://contracts.example.com/contract/abc"


class TestCreateFromTemplate:
    """Tests for contracts rendered from the web development template."""

    @staticmethod
    def _terms(**overrides):
        values = {
            "client_name": "Bea Client",
            "client_email": "b@x.com",
            "developer_name": "Ada Developer",
            "hourly_rate": Decimal("45"),
            "estimated_min_total": Decimal("4500"),
            "estimated_max_total": Decimal("6300"),
            "hosting_fee": Decimal("20"),
        }
        values.update(overrides)
        return WebDevelopmentTerms(**values)

    @pytest.mark.asyncio
    async def test_receiver_reads_rendered_contract(self, service, store, sender, receiver):
        record = await service.create_from_template(sender, terms=self._terms())

        document = await store.get("contracts", record.id)
        assert document["title"] == "Web Development Contract for Bea Client"
        assert document["receiverEmail"] == "b@x.com"
        assert "Ada Developer" not in document["encryptedData"]

        view = await service.get_contract(receiver, record.id)
        assert "**Contract Date:** March 1, 2026" in view.content
        assert "* **Hourly Rate:** £45" in view.content
        assert "**1. Services**" in view.content
        assert "**10. Entire Agreement**" in view.content
        assert view.sender.full_name == "Ada Developer"
        assert view.sender.designation == "Freelance Web and App Developer"
        assert view.receiver.full_name == "Bea Client"

    @pytest.mark.asyncio
    async def test_developer_email_defaults_to_principal(self, service, sender, receiver):
        record = await service.create_from_template(sender, terms=self._terms())

        view = await service.get_contract(receiver, record.id)
        assert view.sender.email == "a@x.com"
        assert "* **Email:** a@x.com" in view.content

    @pytest.mark.asyncio
    async def test_custom_sections_replace_defaults(self, service, sender, receiver):
        sections = [
            ContractSection(title="Scope", content="Landing page only."),
            ContractSection(title="Payment", content="Upfront."),
        ]

        record = await service.create_from_template(
            sender, terms=self._terms(), sections=sections
        )

        view = await service.get_contract(receiver, record.id)
        assert "**1. Scope**\nLanding page only." in view.content
        assert "**2. Payment**" in view.content
        assert "Services**" not in view.content

    @pytest.mark.asyncio
    async def test_other_developer_email_rejected(self, service, sender):
        with pytest.raises(ValidationError):
            await service.create_from_template(
                sender, terms=self._terms(developer_email="someone-else@x.com")
            )

        assert await service.list_sent_contracts(sender) == []

    @pytest.mark.asyncio
    async def test_inverted_cost_range_rejected(self, service, sender):
        with pytest.raises(ValidationError):
            await service.create_from_template(
                sender,
                terms=self._terms(
                    estimated_min_total=Decimal("7000"), estimated_max_total=Decimal("6300")
                ),
            )

    @pytest.mark.asyncio
    async def test_unverified_principal_rejected(self, service):
        unverified = Principal(id="uid1", email="a@x.com", email_verified=False)

        with pytest.raises(EmailNotVerifiedError):
            await service.create_from_template(unverified, terms=self._terms())


class TestGetContract:
    """Tests for authorized decryption."""

    @pytest.mark.asyncio
    async def test_receiver_reads_decrypted_contract(self, service, sender, receiver, payload):
        record = await _create(service, sender, payload)

        view = await service.get_contract(receiver, record.id)

        assert view.id == record.id
        assert view.content == "Hi"
        assert view.sender.email == "a@x.com"
        assert view.receiver.email == "b@x.com"
        assert view.status == ContractStatus.PENDING
        assert view.version == 0

    @pytest.mark.asyncio
    async def test_sender_reads_decrypted_contract(self, service, sender, payload):
        record = await _create(service, sender, payload)

        view = await service.get_contract(sender, record.id)

        assert view.content == "Hi"

    @pytest.mark.asyncio
    async def test_stranger_rejected_before_decryption(self, store, sender, stranger, payload):
        codec = MagicMock(wraps=PayloadCodec())
        service = ContractService(store, codec)
        record = await _create(service, sender, payload)

        with pytest.raises(UnauthorizedError):
            await service.get_contract(stranger, record.id)

        codec.decrypt.assert_not_called()

    @pytest.mark.asyncio
    async def test_email_match_is_exact(self, service, sender, payload):
        record = await _create(service, sender, payload)
        shouting = Principal(id="uid2", email="B@X.COM", email_verified=True)

        with pytest.raises(UnauthorizedError):
            await service.get_contract(shouting, record.id)

    @pytest.mark.asyncio
    async def test_missing_contract(self, service, receiver):
        with pytest.raises(NotFoundError) as exc_info:
            await service.get_contract(receiver, "does-not-exist")

        assert exc_info.value.details == {"resource": "Contract", "identifier": "does-not-exist"}

    @pytest.mark.asyncio
    async def test_changed_receiver_breaks_decryption(
        self, service, store, sender, payload
    ):
        """Test that rewriting receiverEmail strands the ciphertext."""
        record = await _create(service, sender, payload)
        await store.update_fields("contracts", record.id, {"receiverEmail": "new@x.com"})
        new_receiver = Principal(id="uid9", email="new@x.com", email_verified=True)

        with pytest.raises(PayloadError):
            await service.get_contract(new_receiver, record.id)

    @pytest.mark.asyncio
    async def test_undecodable_payload_is_malformed(self, service, store, sender, receiver):
        contract_id = await store.put(
            "contracts",
            {
                "title": "Broken",
                "createdBy": "uid1",
                "senderEmail": "a@x.com",
                "receiverEmail": "b@x.com",
                "status": "pending",
                "encryptedData": encrypt_text("<p>not json</p>", "uid1b@x.com"),
            },
        )

        with pytest.raises(MalformedPayloadError):
            await service.get_contract(receiver, contract_id)

    @pytest.mark.asyncio
    async def test_reads_record_written_by_browser_client(self, service, store, receiver):
        """Test a record shaped exactly like the ones the web client stores.

        The ciphertext comes from `openssl enc -aes-256-cbc -md md5 -a` under
        the passphrase "uid1b@x.com", the same format CryptoJS writes.
        """
        encrypted = (
            "U2FsdGVkX1+cYCAk/emTCq1iOzQfJGJEukG/F6VPzwkDFSEYGa7xjGyPZ1sPSSoRNobaGKGFgSeM8VJKcNssax+H"
            "vRsQIMamjwrcEs68VcQxu3kGjStBkLF9ORBAuIv6y49jmaGqJ+IGkMkalnvR2e4K8vH9fip7hggPmneH15vbEIdF"
            "dJZEYnaYIYz0iKpt"
        )
        contract_id = await store.put(
            "contracts",
            {
                "title": "Legacy",
                "encryptedData": encrypted,
                "createdBy": "uid1",
                "createdAt": "2025-01-10T09:00:00+00:00",
                "status": "pending",
                "senderEmail": "a@x.com",
                "receiverEmail": "b@x.com",
            },
        )

        view = await service.get_contract(receiver, contract_id)

        assert view.content == "<p>Hello</p>"
        assert view.receiver.full_name == "Bea"
        assert view.version == 0

    @pytest.mark.asyncio
    async def test_expired_contract_reads_as_expired(self, service, clock, sender, receiver, payload):
        record = await _create(
            service, sender, payload, expiry_date=clock.now + timedelta(days=1)
        )
        clock.now = clock.now + timedelta(days=2)

        view = await service.get_contract(receiver, record.id)

        assert view.status == ContractStatus.EXPIRED


class TestEditContract:
    """Tests for revisions."""

    @pytest.mark.asyncio
    async def test_edit_increments_version_and_replaces_ciphertext(
        self, service, store, sender, receiver, payload
    ):
        record = await _create(service, sender, payload)
        old_ciphertext = (await store.get("contracts", record.id))["encryptedData"]

        view = await service.edit_contract(sender, record.id, content="Hi v2")

        document = await store.get("contracts", record.id)
        assert view.version == 1
        assert view.content == "Hi v2"
        assert document["version"] == 1
        assert document["encryptedData"] != old_ciphertext
        assert document["lastEditedBy"] == "uid1"
        assert "lastEditedAt" in document
        assert (await service.get_contract(receiver, record.id)).content == "Hi v2"

    @pytest.mark.asyncio
    async def test_version_counts_edits(self, service, store, sender, payload):
        record = await _create(service, sender, payload)

        for n in range(1, 4):
            await service.edit_contract(sender, record.id, content=f"Hi v{n + 1}")

        document = await store.get("contracts", record.id)
        assert document["version"] == 3

    @pytest.mark.asyncio
    async def test_edit_keeps_untouched_payload_fields(self, service, sender, full_payload):
        record = await _create(service, sender, full_payload)

        view = await service.edit_contract(sender, record.id, title="Renamed")

        assert view.title == "Renamed"
        assert view.content == full_payload.content
        assert view.receiver.company_name == "Receiver GmbH"

    @pytest.mark.asyncio
    async def test_edit_party_details_keeps_emails(self, service, sender, payload):
        record = await _create(service, sender, payload)

        view = await service.edit_contract(
            sender,
            record.id,
            receiver=PartyDetails(full_name="Bea Receiver", company_name="Receiver Ltd"),
        )

        assert view.receiver.full_name == "Bea Receiver"
        assert view.receiver.email == "b@x.com"

    @pytest.mark.asyncio
    async def test_receiver_email_cannot_change(self, service, sender, payload):
        record = await _create(service, sender, payload)

        with pytest.raises(ValidationError):
            await service.edit_contract(
                sender, record.id, receiver=PartyDetails(email="other@x.com")
            )

    @pytest.mark.asyncio
    async def test_only_sender_can_edit(self, service, sender, receiver, payload):
        record = await _create(service, sender, payload)

        with pytest.raises(UnauthorizedError):
            await service.edit_contract(receiver, record.id, content="mine now")

    @pytest.mark.asyncio
    async def test_signed_contract_cannot_be_edited(self, service, sender, receiver, payload):
        record = await _create(service, sender, payload)
        await service.sign_contract(receiver, record.id)

        with pytest.raises(ContractStateError):
            await service.edit_contract(sender, record.id, content="too late")

    @pytest.mark.asyncio
    async def test_stale_expected_version_conflicts(self, service, sender, payload):
        record = await _create(service, sender, payload)
        await service.edit_contract(sender, record.id, content="v1")

        with pytest.raises(ConflictError):
            await service.edit_contract(sender, record.id, content="v2", expected_version=0)

    @pytest.mark.asyncio
    async def test_matching_expected_version_succeeds(self, service, sender, payload):
        record = await _create(service, sender, payload)

        view = await service.edit_contract(sender, record.id, content="v1", expected_version=0)

        assert view.version == 1

    @pytest.mark.asyncio
    async def test_concurrent_write_between_read_and_write_conflicts(
        self, store, codec, clock, sender, payload
    ):
        """Test that the conditional write catches a revision landing mid-edit."""
        service = ContractService(store, codec, clock=clock)
        record = await _create(service, sender, payload)

        original_get = store.get

        async def get_then_race(collection, id):
            document = await original_get(collection, id)
            # Another client saves revision 1 right after our read.
            await store.update_fields(collection, id, {"version": 1})
            return document

        store.get = get_then_race
        try:
            with pytest.raises(ConflictError):
                await service.edit_contract(sender, record.id, content="lost update")
        finally:
            store.get = original_get

        document = await store.get("contracts", record.id)
        assert document["version"] == 1


class TestSignContract:
    """Tests for the sign transition."""

    @pytest.mark.asyncio
    async def test_receiver_signs(self, service, store, clock, sender, receiver, payload):
        record = await _create(service, sender, payload)

        signed = await service.sign_contract(receiver, record.id)

        document = await store.get("contracts", record.id)
        assert signed.status == ContractStatus.SIGNED
        assert document["status"] == "signed"
        assert document["signedBy"] == "uid2"
        assert document["signedAt"] == clock.now.isoformat()

    @pytest.mark.asyncio
    async def test_sender_cannot_sign(self, service, sender, receiver, payload):
        record = await _create(service, sender, payload)
        await service.sign_contract(receiver, record.id)

        with pytest.raises(UnauthorizedError):
            await service.sign_contract(sender, record.id)

    @pytest.mark.asyncio
    async def test_cannot_sign_twice(self, service, sender, receiver, payload):
        record = await _create(service, sender, payload)
        await service.sign_contract(receiver, record.id)

        with pytest.raises(ContractStateError) as exc_info:
            await service.sign_contract(receiver, record.id)

        assert exc_info.value.details["status"] == "signed"

    @pytest.mark.asyncio
    async def test_cannot_sign_expired(self, service, clock, sender, receiver, payload):
        record = await _create(service, sender, payload, expiry_date=clock.now + timedelta(hours=1))
        clock.now = clock.now + timedelta(hours=2)

        with pytest.raises(ContractStateError) as exc_info:
            await service.sign_contract(receiver, record.id)

        assert exc_info.value.details["status"] == "expired"

    @pytest.mark.asyncio
    async def test_signing_keeps_payload_readable(self, service, sender, receiver, payload):
        record = await _create(service, sender, payload)
        await service.sign_contract(receiver, record.id)

        view = await service.get_contract(sender, record.id)

        assert view.status == ContractStatus.SIGNED
        assert view.signed_by == "uid2"
        assert view.content == "Hi"


class TestListContracts:
    """Tests for plaintext listings."""

    @pytest.mark.asyncio
    async def test_lists_sent_newest_first(self, service, clock, sender, payload):
        first = await _create(service, sender, payload)
        clock.now = clock.now + timedelta(minutes=1)
        second = await _create(service, sender, payload)

        records = await service.list_sent_contracts(sender)

        assert [r.id for r in records] == [second.id, first.id]

    @pytest.mark.asyncio
    async def test_lists_received(self, service, sender, receiver, stranger, payload):
        record = await _create(service, sender, payload)

        assert [r.id for r in await service.list_received_contracts(receiver)] == [record.id]
        assert await service.list_received_contracts(stranger) == []

    @pytest.mark.asyncio
    async def test_listing_never_decrypts(self, store, sender, payload):
        codec = MagicMock(wraps=PayloadCodec())
        service = ContractService(store, codec)
        await _create(service, sender, payload)

        await service.list_sent_contracts(sender)

        codec.decrypt.assert_not_called()


class TestStoreFailures:
    """Tests that store errors propagate untouched."""

    @pytest.mark.asyncio
    async def test_store_error_surfaces(self, codec, receiver):
        failing_store = MagicMock()

        async def fail(*args, **kwargs):
            raise StoreError("Document store request failed")

        failing_store.get = fail
        service = ContractService(failing_store, codec)

        with pytest.raises(StoreError):
            await service.get_contract(receiver, "any")
