from datetime import datetime

import pytest
from bson import ObjectId
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

import database
from database import create_document, get_collection, get_document, get_documents, update_document
from schemas import DEFAULT_PLATFORM, DEFAULT_THEME, Project, User


class TestRegistry:
    def test_same_collection_returned(self, mongo):
        assert get_collection(User) is get_collection(User)
        assert list(database._collections) == ["user"]

    def test_unique_email_index_created_on_first_access(self, mongo):
        get_collection(User)
        index = mongo["user"].index_information()["email_1"]
        assert index["unique"] is True

    def test_cached_collection_needs_no_database(self, mongo, monkeypatch):
        collection = get_collection(Project)
        monkeypatch.setattr(database, "db", None)
        assert get_collection(Project) is collection

    def test_unconfigured_database_raises(self, monkeypatch):
        monkeypatch.setattr(database, "db", None)
        monkeypatch.setattr(database, "_collections", {})
        with pytest.raises(RuntimeError):
            get_collection(User)


class TestUser:
    def test_defaults_applied(self, mongo):
        doc = create_document(User, {"email": "ana@example.com", "name": "Ana"})
        assert doc["preferences"] == {"defaultPlatform": DEFAULT_PLATFORM, "theme": DEFAULT_THEME}
        assert doc["isActive"] is True
        assert doc["image"] is None
        assert doc["createdAt"] == doc["updatedAt"]

    def test_duplicate_email_rejected(self, mongo):
        create_document(User, {"email": "ana@example.com", "name": "Ana"})
        with pytest.raises(DuplicateKeyError):
            create_document(User, {"email": "ana@example.com", "name": "Someone else"})
        assert mongo["user"].count_documents({}) == 1

    @pytest.mark.parametrize("missing", ["email", "name"])
    def test_required_fields(self, mongo, missing):
        data = {"email": "ana@example.com", "name": "Ana"}
        del data[missing]
        with pytest.raises(ValidationError):
            create_document(User, data)
        assert mongo["user"].count_documents({}) == 0

    def test_empty_name_rejected(self, mongo):
        with pytest.raises(ValidationError):
            create_document(User, {"email": "ana@example.com", "name": ""})


class TestProject:
    @pytest.mark.parametrize("missing", ["userId", "name", "platform"])
    def test_required_fields(self, mongo, project_payload, missing):
        del project_payload[missing]
        with pytest.raises(ValidationError):
            create_document(Project, project_payload)

    def test_track_items_stored_unchanged(self, mongo, project_payload):
        created = create_document(Project, project_payload)
        stored = get_document(Project, created["_id"])
        assert stored["trackItems"] == project_payload["trackItems"]
        assert stored["userId"] == "user-1"

    def test_list_track_items_accepted(self, mongo, project_payload):
        project_payload["trackItems"] = [{"id": "a"}, 3, "loose"]
        created = create_document(Project, project_payload)
        assert get_document(Project, created["_id"])["trackItems"] == [{"id": "a"}, 3, "loose"]

    def test_optional_shapes_default(self, mongo):
        doc = create_document(Project, {"userId": "u", "name": "n", "platform": "p"})
        assert doc["trackItems"] == {}
        assert doc["size"] == {"width": None, "height": None}
        assert doc["metadata"] == {"duration": None, "fps": None}


class TestTimestamps:
    def test_created_at_kept_updated_at_bumped(self, mongo, clock, project_payload):
        created = create_document(Project, project_payload)
        first = update_document(Project, created["_id"], {"name": "Renamed"})
        second = update_document(Project, created["_id"], {"platform": "youtube-short"})

        assert first["createdAt"] == created["createdAt"]
        assert second["createdAt"] == created["createdAt"]
        assert created["updatedAt"] < first["updatedAt"] < second["updatedAt"]
        assert second["name"] == "Renamed"

    def test_created_at_cannot_be_overwritten(self, mongo, clock, project_payload):
        created = create_document(Project, project_payload)
        updated = update_document(Project, created["_id"], {"createdAt": datetime(2000, 1, 1)})
        assert updated["createdAt"] == created["createdAt"]

    def test_update_missing_document(self, mongo):
        assert update_document(Project, ObjectId(), {"name": "x"}) is None


def test_get_documents_filters_and_sorts(mongo, clock):
    for name in ("a", "b", "c"):
        create_document(Project, {"userId": "u1", "name": name, "platform": "p"})
    create_document(Project, {"userId": "u2", "name": "other", "platform": "p"})

    docs = get_documents(Project, {"userId": "u1"}, sort=[("updatedAt", -1)])
    assert [d["name"] for d in docs] == ["c", "b", "a"]
