"""Integration tests for the SQLAlchemy record store."""

import pytest

from activity_logger.core.errors import UnknownEntityError, ValidationError
from tests.factories.user import user_payload


pytestmark = pytest.mark.integration


class TestSQLAlchemyRecordStore:
    """Tests for SQLAlchemyRecordStore."""

    async def test_insert_assigns_storage_fields(self, store):
        """Test that IDs and timestamps come from the database."""
        record = await store.insert("user", {**user_payload(), "id": 999, "created_at": "x"})

        assert record["id"] != 999
        assert isinstance(record["created_at"], str)
        assert record["updated_at"] is not None

    async def test_find_by_id(self, store):
        """Test lookups with integer and string IDs."""
        record = await store.insert("user", user_payload())

        assert await store.find_by_id("user", record["id"]) == record
        assert await store.find_by_id("user", str(record["id"])) == record

    @pytest.mark.parametrize("record_id", ["999", "not-a-number"])
    async def test_find_missing(self, store, record_id):
        """Test that missing or unparseable IDs return None."""
        assert await store.find_by_id("user", record_id) is None

    async def test_update(self, store):
        """Test that only writable fields are updated."""
        record = await store.insert("user", user_payload(full_name="Old"))

        updated = await store.update("user", record["id"], {"full_name": "New", "id": 5000})

        assert updated["id"] == record["id"]
        assert updated["full_name"] == "New"

    async def test_update_missing(self, store):
        """Test that updating a missing record returns None."""
        assert await store.update("user", 4242, {"full_name": "x"}) is None

    async def test_delete(self, store):
        """Test that delete returns the removed record."""
        record = await store.insert("user", user_payload())

        assert await store.delete("user", record["id"]) == record
        assert await store.find_by_id("user", record["id"]) is None
        assert await store.delete("user", record["id"]) is None

    async def test_query(self, store):
        """Test equality and membership criteria with sorting and paging."""
        first = await store.insert("user", user_payload(full_name="A"))
        second = await store.insert("user", user_payload(full_name="B"))
        await store.insert("user", user_payload(full_name="C", is_active=False))

        active = await store.query("user", {"is_active": True}, sort=[("id", "desc")])
        chosen = await store.query("user", {"id": [str(first["id"]), second["id"], "bad"]})
        page = await store.query("user", sort=[("id", "asc")], limit=1, skip=1)

        assert [r["full_name"] for r in active] == ["B", "A"]
        assert {r["id"] for r in chosen} == {first["id"], second["id"]}
        assert page == [second]

    async def test_query_unknown_field(self, store):
        """Test that unknown criteria fields are rejected."""
        with pytest.raises(ValidationError):
            await store.query("user", {"password": "x"})

    async def test_unknown_entity(self, store):
        """Test that unregistered entity types are rejected."""
        with pytest.raises(UnknownEntityError):
            await store.find_by_id("pet", 1)

        assert store.has_model("pet") is False
        assert "user" in store.entity_types

    async def test_ping(self, store):
        """Test the connectivity check."""
        await store.ping()
