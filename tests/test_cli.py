"""
Command-line tests for cedar-check, openfga-check and docmgmt.

The relational store is the seeded in-memory database (`cli_database`);
the OpenFGA client is the `fga_client` mock.
"""

from types import SimpleNamespace

import pytest
from sqlalchemy.orm import sessionmaker
from typer.testing import CliRunner

import cli.openfga_check as openfga_check
import models.database as database
from cli.cedar_check import app as cedar_app
from cli.main import app as admin_app
from core.access_control import DocumentAccessControl
from core.errors import ConfigurationError, UsageError
from core.rule_engine import RuleTableEngine
from models.database import make_engine
from scenarios import run_scenarios

runner = CliRunner()


@pytest.fixture
def fga_cli(fga_client, monkeypatch):
    monkeypatch.setattr(openfga_check, "make_client", lambda api_url: fga_client)
    monkeypatch.setenv("OPENFGA_STORE_ID", "store-env")
    monkeypatch.delenv("OPENFGA_MODEL_ID", raising=False)
    return fga_client


class TestCedarCheck:

    def test_allowed(self, cli_database):
        result = runner.invoke(cedar_app, ["alice", "doc1"])
        assert result.exit_code == 0
        assert "ALLOWED: alice can view doc1" in result.output

    def test_denied(self, cli_database):
        result = runner.invoke(cedar_app, ["david", "doc1"])
        assert result.exit_code == 0
        assert "DENIED: david cannot view doc1" in result.output

    def test_missing_arguments(self, cli_database):
        result = runner.invoke(cedar_app, ["alice"])
        assert result.exit_code == 2

    def test_unknown_document(self, cli_database):
        result = runner.invoke(cedar_app, ["alice", "doc99"])
        assert result.exit_code == 1
        assert "NotFoundError" in result.output
        assert "ALLOWED" not in result.output
        assert "DENIED" not in result.output

    def test_unreadable_policy_file(self, cli_database, tmp_path, monkeypatch):
        monkeypatch.setenv("CEDAR_POLICY_PATH", str(tmp_path / "missing.cedar"))
        result = runner.invoke(cedar_app, ["alice", "doc1"])
        assert result.exit_code == 1
        assert "ConfigurationError" in result.output


class TestOpenFGACheck:

    def test_allowed(self, fga_cli):
        result = runner.invoke(openfga_check.app, ["alice", "doc1"])

        assert result.exit_code == 0
        assert "ALLOWED: alice can view doc1" in result.output
        fga_cli.set_store_id.assert_called_once_with("store-env")
        fga_cli.list_stores.assert_not_called()

    def test_denied(self, fga_cli):
        fga_cli.check.return_value = SimpleNamespace(allowed=False)

        result = runner.invoke(openfga_check.app, ["david", "doc1"])

        assert result.exit_code == 0
        assert "DENIED: david cannot view doc1" in result.output

    def test_no_store(self, fga_cli, monkeypatch):
        monkeypatch.delenv("OPENFGA_STORE_ID")
        fga_cli.list_stores.return_value = SimpleNamespace(stores=[])

        result = runner.invoke(openfga_check.app, ["alice", "doc1"])

        assert result.exit_code == 1
        assert "ConfigurationError" in result.output
        fga_cli.check.assert_not_called()


class TestAdminCli:

    def test_check_with_trace(self, cli_database):
        result = runner.invoke(admin_app, ["check", "bob", "doc2", "--engine", "local"])

        assert result.exit_code == 0
        assert "ACCESS GRANTED" in result.output
        assert "folder-viewer" in result.output

    def test_check_denied_action(self, cli_database):
        result = runner.invoke(admin_app, ["check", "bob", "doc4", "-a", "delete", "-e", "cedar"])

        assert result.exit_code == 0
        assert "ACCESS DENIED" in result.output

    def test_check_unknown_action(self, cli_database):
        result = runner.invoke(admin_app, ["check", "bob", "doc4", "--action", "publish"])
        assert result.exit_code == 2
        assert "UsageError" in result.output

    def test_check_unknown_engine(self, cli_database):
        result = runner.invoke(admin_app, ["check", "bob", "doc4", "--engine", "opa"])
        assert result.exit_code == 2

    @pytest.mark.parametrize("engine", ["local", "cedar"])
    def test_scenarios_pass(self, cli_database, engine):
        result = runner.invoke(admin_app, ["scenario", "basic", "--engine", engine])
        assert result.exit_code == 0
        assert "6 passed" in result.output

    def test_unknown_scenario_name(self, cli_database):
        result = runner.invoke(admin_app, ["scenario", "nope", "--engine", "local"])
        assert result.exit_code == 2
        assert "UsageError" in result.output

    def test_documents_list_storage_failure(self, monkeypatch):
        monkeypatch.setattr(database, "SessionLocal", sessionmaker(bind=make_engine("sqlite://")))
        result = runner.invoke(admin_app, ["documents", "list"])
        assert result.exit_code == 1
        assert "DataAccessError" in result.output

    def test_documents_list(self, cli_database):
        result = runner.invoke(admin_app, ["documents", "list"])
        assert result.exit_code == 0
        for document_id in ("doc1", "doc2", "doc3", "doc4"):
            assert document_id in result.output

    def test_documents_show(self, cli_database):
        result = runner.invoke(admin_app, ["documents", "show", "doc1", "--user", "alice"])

        assert result.exit_code == 0
        assert "folder1" in result.output
        assert "view, edit, delete, share" in result.output

    def test_banner(self, cli_database):
        result = runner.invoke(admin_app, [])
        assert result.exit_code == 0
        assert "Quick Start" in result.output


class TestWalkthrough:

    def test_every_scenario_passes_locally(self, session):
        passed, failed = run_scenarios(DocumentAccessControl(RuleTableEngine(), session))
        assert failed == 0
        assert passed == 22

    def test_unknown_scenario(self, session):
        with pytest.raises(UsageError):
            run_scenarios(DocumentAccessControl(RuleTableEngine(), session), "nope")

    def test_embedded_engine_needs_session(self):
        with pytest.raises(UsageError):
            DocumentAccessControl(RuleTableEngine())


class TestDatabaseConfiguration:

    def test_malformed_url(self):
        with pytest.raises(ConfigurationError):
            make_engine("not a database url")

    def test_malformed_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("DOCMGMT_DATABASE_URL", "not a database url")
        monkeypatch.setattr(database, "engine", None)
        monkeypatch.setattr(database, "SessionLocal", sessionmaker())

        result = runner.invoke(cedar_app, ["alice", "doc1"])

        assert result.exit_code == 1
        assert "ConfigurationError" in result.output
