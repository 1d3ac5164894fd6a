"""
OpenFGA engine tests.

The SDK client is replaced by a MagicMock (see the `fga_client` fixture);
only the calls this repository makes are exercised.
"""

import json
from types import SimpleNamespace

import pytest
from openfga_sdk.exceptions import ApiException

from core.config import DEFAULT_FGA_MODEL_PATH
from core.errors import ConfigurationError, DataAccessError, UsageError
from core.fga_engine import RELATIONS, OpenFGAEngine, load_model, provision_store
from models.entities import AccessDecision
from scenarios.demo_data import fga_tuples


class TestResolution:

    def test_configured_ids_skip_discovery(self, fga_client):
        engine = OpenFGAEngine(fga_client, store_id="s-env", model_id="m-env")

        assert engine.resolve_store() == "s-env"
        assert engine.resolve_model() == "m-env"
        fga_client.list_stores.assert_not_called()
        fga_client.read_authorization_models.assert_not_called()
        fga_client.set_store_id.assert_called_once_with("s-env")
        fga_client.set_authorization_model_id.assert_called_once_with("m-env")

    def test_discovery_uses_first_store_and_model(self, fga_client):
        fga_client.list_stores.return_value = SimpleNamespace(
            stores=[SimpleNamespace(id="store-1"), SimpleNamespace(id="store-2")]
        )
        engine = OpenFGAEngine(fga_client)

        assert engine.resolve_store() == "store-1"
        assert engine.resolve_model() == "model-1"

    def test_no_store(self, fga_client):
        fga_client.list_stores.return_value = SimpleNamespace(stores=[])
        with pytest.raises(ConfigurationError):
            OpenFGAEngine(fga_client).resolve_store()

    def test_no_model(self, fga_client):
        fga_client.read_authorization_models.return_value = SimpleNamespace(authorization_models=[])
        with pytest.raises(ConfigurationError):
            OpenFGAEngine(fga_client, store_id="s").resolve_model()

    def test_server_unreachable_during_discovery(self, fga_client):
        fga_client.list_stores.side_effect = ConnectionRefusedError("connection refused")
        with pytest.raises(ConfigurationError):
            OpenFGAEngine(fga_client).resolve_store()


class TestCheck:

    def test_allowed(self, fga_client):
        decision, trace = OpenFGAEngine(fga_client).check_access("alice", "doc1")

        assert decision == AccessDecision.ALLOW
        assert trace == ["can_view"]
        body = fga_client.check.call_args[0][0]
        assert body.user == "user:alice"
        assert body.relation == "can_view"
        assert body.object == "document:doc1"

    def test_denied(self, fga_client):
        fga_client.check.return_value = SimpleNamespace(allowed=False)

        decision, trace = OpenFGAEngine(fga_client).check_access("david", "doc1")

        assert decision == AccessDecision.DENY
        assert trace == []

    @pytest.mark.parametrize("action", ["edit", "delete", "share"])
    def test_action_relations(self, fga_client, action):
        OpenFGAEngine(fga_client).check_access("alice", "doc1", action)
        assert fga_client.check.call_args[0][0].relation == RELATIONS[action]

    def test_unknown_action(self, fga_client):
        with pytest.raises(UsageError):
            OpenFGAEngine(fga_client).check_access("alice", "doc1", "publish")
        fga_client.check.assert_not_called()

    def test_check_failure_is_not_a_deny(self, fga_client):
        fga_client.check.side_effect = ApiException(status=500, reason="internal")
        with pytest.raises(DataAccessError):
            OpenFGAEngine(fga_client).check_access("alice", "doc1")

    def test_missing_decision(self, fga_client):
        fga_client.check.return_value = SimpleNamespace(allowed=None)
        with pytest.raises(DataAccessError):
            OpenFGAEngine(fga_client).check_access("alice", "doc1")


class TestProvisioning:

    def test_provision_store(self, fga_client):
        fga_client.create_store.return_value = SimpleNamespace(id="new-store")
        fga_client.write_authorization_model.return_value = SimpleNamespace(
            authorization_model_id="new-model"
        )
        model = load_model(DEFAULT_FGA_MODEL_PATH)

        store_id, model_id = provision_store(fga_client, "document-management", model, fga_tuples())

        assert (store_id, model_id) == ("new-store", "new-model")
        fga_client.write_authorization_model.assert_called_once_with(model)
        writes = fga_client.write.call_args[0][0].writes
        assert len(writes) == len(fga_tuples())
        assert ("user:bob", "viewer", "folder:folder1") in {(t.user, t.relation, t.object) for t in writes}

    def test_provision_failure(self, fga_client):
        fga_client.create_store.side_effect = ApiException(status=400, reason="bad request")
        with pytest.raises(ConfigurationError):
            provision_store(fga_client, "x", {}, [])

    def test_unreadable_model(self, tmp_path):
        bad = tmp_path / "model.json"
        bad.write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_model(str(bad))


class TestModelAndTuples:

    def test_model_defines_checked_relations(self):
        with open(DEFAULT_FGA_MODEL_PATH) as f:
            model = json.load(f)

        types = {t["type"]: t for t in model["type_definitions"]}
        assert set(types) == {"user", "organization", "folder", "document"}
        for relation in RELATIONS.values():
            assert relation in types["document"]["relations"]

    def test_document_delete_is_owner_only(self):
        model = load_model(DEFAULT_FGA_MODEL_PATH)
        document = next(t for t in model["type_definitions"] if t["type"] == "document")
        assert document["relations"]["can_delete"] == {"computedUserset": {"relation": "owner"}}

    def test_fixture_tuples(self):
        tuples = fga_tuples()

        assert len(tuples) == len(set(tuples)) == 25
        assert ("user:alice", "member", "organization:org1") in tuples
        assert ("folder:folder1", "parent_folder", "document:doc2") in tuples
        assert not any(obj == "document:doc4" and rel == "parent_folder" for _, rel, obj in tuples)
