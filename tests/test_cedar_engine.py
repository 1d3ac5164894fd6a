"""Cedar adapter tests: policy loading and entity graph construction."""

import pytest

from core.cedar_engine import (
    CedarEngine, build_entities, load_policies, policy_labels, validate_entities
)
from core.config import DEFAULT_POLICY_PATH
from core.entity_loader import EntityLoader
from core.errors import ConfigurationError, EvaluationError


def by_uid(entities):
    return {(e["uid"]["type"].split("::")[-1], e["uid"]["id"]): e for e in entities}


class TestPolicyLoading:

    def test_bundled_policies_load(self):
        engine = CedarEngine.from_file(DEFAULT_POLICY_PATH)
        assert engine._policy_ids == [
            "owner-full", "direct-editor", "direct-viewer",
            "folder-owner", "folder-editor", "folder-viewer",
            "organization-member",
        ]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_policies(str(tmp_path / "absent.cedar"))

    def test_unparsable_policies(self, tmp_path):
        broken = tmp_path / "broken.cedar"
        broken.write_text("permit (principal, action, resource) when { resource.owner == ")
        with pytest.raises(EvaluationError):
            load_policies(str(broken))


class TestEntityGraph:

    def test_document_in_folder(self, session):
        context = EntityLoader(session).load("bob", "doc2")
        entities = by_uid(build_entities(context))

        assert set(entities) == {
            ("User", "bob"), ("Document", "doc2"), ("Folder", "folder1"), ("Organization", "org1")
        }

        user = entities[("User", "bob")]
        assert user["attrs"]["organization"] == {
            "__entity": {"type": "DocumentManagement::Organization", "id": "org1"}
        }

        doc = entities[("Document", "doc2")]["attrs"]
        assert doc["owner"]["__entity"]["id"] == "bob"
        assert doc["parent_folder"]["__entity"] == {"type": "DocumentManagement::Folder", "id": "folder1"}
        assert [v["__entity"]["id"] for v in doc["viewers"]] == ["charlie"]
        assert "editors" not in doc

        folder = entities[("Folder", "folder1")]["attrs"]
        assert folder["owner"]["__entity"]["id"] == "alice"
        assert [v["__entity"]["id"] for v in folder["viewers"]] == ["bob"]

    def test_absent_facts_are_omitted(self, session):
        from models.entities import User
        session.add(User(id="frank", name="Frank Free"))
        session.commit()

        context = EntityLoader(session).load("frank", "doc4")
        entities = by_uid(build_entities(context))

        assert entities[("User", "frank")]["attrs"] == {}
        assert "parent_folder" not in entities[("Document", "doc4")]["attrs"]
        assert not any(kind == "Folder" for kind, _ in entities)

    def test_dangling_folder_reference(self, session, cedar_engine):
        context = EntityLoader(session).load("bob", "doc2")
        entities = [e for e in build_entities(context)
                    if not e["uid"]["type"].endswith("::Folder")]

        with pytest.raises(EvaluationError):
            validate_entities(entities)
        with pytest.raises(EvaluationError):
            cedar_engine.check_access(context, "view", entities=entities)

    def test_grantee_users_need_no_record(self, session):
        context = EntityLoader(session).load("alice", "doc4")
        validate_entities(build_entities(context))


class TestEvaluatorErrors:

    def test_evaluator_diagnostics_raise(self, session, cedar_engine):
        """A grantee set of the wrong type makes the evaluator itself report an error."""
        context = EntityLoader(session).load("charlie", "doc2")
        entities = build_entities(context)
        for entity in entities:
            if entity["uid"]["type"].endswith("::Document"):
                entity["attrs"]["editors"] = "bob"

        validate_entities(entities)
        with pytest.raises(EvaluationError):
            cedar_engine.check_access(context, "view", entities=entities)


class TestPolicyLabels:

    def test_bundled_labels(self):
        with open(DEFAULT_POLICY_PATH) as f:
            labels = policy_labels(f.read())
        assert labels["policy0"] == "owner-full"
        assert labels["policy6"] == "organization-member"

    def test_annotation_text_in_comments_is_ignored(self, session):
        with open(DEFAULT_POLICY_PATH) as f:
            policies = '// older rules used @id("legacy")\n' + f.read()
        engine = CedarEngine(policies)

        _, trace = engine.check_access(EntityLoader(session).load("alice", "doc1"), "view")

        assert trace == ["owner-full", "folder-owner", "organization-member"]

    def test_unannotated_policy_keeps_generated_id(self, session):
        with open(DEFAULT_POLICY_PATH) as f:
            policies = (
                'permit (principal == DocumentManagement::User::"eve", action, resource);\n'
                + f.read()
            )
        engine = CedarEngine(policies)

        _, eve_trace = engine.check_access(EntityLoader(session).load("eve", "doc1"), "view")
        _, alice_trace = engine.check_access(EntityLoader(session).load("alice", "doc1"), "view")

        assert eve_trace == ["policy0"]
        assert alice_trace == ["owner-full", "folder-owner", "organization-member"]
