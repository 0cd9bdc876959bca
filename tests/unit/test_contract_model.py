"""
Unit tests for contract records and the merged view.
"""
from datetime import UTC, datetime, timedelta

from contractseal.domain.contracts.models import (
    ConfidentialPayload,
    ContractRecord,
    ContractStatus,
    ContractView,
    PartyDetails,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class TestContractRecord:
    """Tests for ContractRecord."""

    def test_loads_browser_document(self):
        """Test that a camelCase document without version loads with version 0."""
        record = ContractRecord.from_document(
            "abc123",
            {
                "title": "Web Development Contract",
                "createdBy": "uid1",
                "senderEmail": "a@x.com",
                "receiverEmail": "b@x.com",
                "status": "pending",
                "encryptedData": "U2FsdGVkX1...",
                "createdAt": "2026-02-01T10:00:00+00:00",
            },
        )

        assert record.id == "abc123"
        assert record.created_by == "uid1"
        assert record.status == ContractStatus.PENDING
        assert record.version == 0
        assert record.created_at == datetime(2026, 2, 1, 10, 0, tzinfo=UTC)

    def test_to_document_uses_camel_case_and_omits_unset(self):
        record = ContractRecord(
            id="abc123",
            title="T",
            created_by="uid1",
            sender_email="a@x.com",
            receiver_email="b@x.com",
            encrypted_data="cipher",
        )

        document = record.to_document()

        assert "id" not in document
        assert document["createdBy"] == "uid1"
        assert document["status"] == "pending"
        assert "signedBy" not in document
        assert "expiryDate" not in document

    def test_status_without_expiry_is_stored_status(self):
        record = ContractRecord(id="c", status=ContractStatus.PENDING)

        assert record.effective_status(NOW) == ContractStatus.PENDING

    def test_pending_past_expiry_reads_as_expired(self):
        record = ContractRecord(id="c", expiry_date=NOW - timedelta(seconds=1))

        assert record.is_expired(NOW) is True
        assert record.effective_status(NOW) == ContractStatus.EXPIRED

    def test_pending_before_expiry_stays_pending(self):
        record = ContractRecord(id="c", expiry_date=NOW + timedelta(days=1))

        assert record.effective_status(NOW) == ContractStatus.PENDING

    def test_signed_contract_does_not_expire(self):
        record = ContractRecord(
            id="c", status=ContractStatus.SIGNED, expiry_date=NOW - timedelta(days=1)
        )

        assert record.effective_status(NOW) == ContractStatus.SIGNED

    def test_naive_expiry_is_treated_as_utc(self):
        record = ContractRecord(id="c", expiry_date=datetime(2026, 2, 28, 12, 0))

        assert record.effective_status(NOW) == ContractStatus.EXPIRED


class TestContractView:
    """Tests for merging plaintext and decrypted fields."""

    def test_merge_combines_record_and_payload(self):
        record = ContractRecord(
            id="c1",
            title="T",
            created_by="uid1",
            sender_email="a@x.com",
            receiver_email="b@x.com",
            encrypted_data="cipher",
            version=2,
        )
        payload = ConfidentialPayload(
            content="Hi",
            sender=PartyDetails(email="a@x.com", full_name="Ada"),
            receiver=PartyDetails(email="b@x.com"),
        )

        view = ContractView.merge(record, payload, NOW)

        assert view.id == "c1"
        assert view.version == 2
        assert view.content == "Hi"
        assert view.sender.full_name == "Ada"
        assert view.status == ContractStatus.PENDING
        assert "encryptedData" not in view.model_dump(by_alias=True)

    def test_payload_wins_on_overlapping_keys(self):
        """Test that a payload key shadowing a plaintext field takes precedence."""
        record = ContractRecord(id="c1", title="Plain title", encrypted_data="cipher")
        payload = ConfidentialPayload.model_validate({"content": "Hi", "title": "Secret title"})

        view = ContractView.merge(record, payload, NOW)

        assert view.title == "Secret title"

    def test_merge_applies_expiry(self):
        record = ContractRecord(id="c1", expiry_date=NOW - timedelta(minutes=5))

        view = ContractView.merge(record, ConfidentialPayload(content="Hi"), NOW)

        assert view.status == ContractStatus.EXPIRED
