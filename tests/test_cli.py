"""Tests for the command line interface."""

from contextlib import contextmanager
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from rich.console import Console
from typer.testing import CliRunner

from newsingest.cli import app
from newsingest.errors import HttpError
from newsingest.models import Category, FetchRun, RunStatus, Source
from newsingest.pipeline import FetchSummary

runner = CliRunner()

CONFIG_YAML = """
profiles:
  tech:
    description: Technology news
    params:
      categories: technology
logging:
  format: text
  level: WARNING
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return path


@pytest.fixture
def orchestrator():
    with patch("newsingest.cli.fetch.IngestionOrchestrator") as cls:
        yield cls.from_config.return_value


def summary(**overrides):
    fields = {
        "run_id": 4,
        "status": RunStatus.SUCCESS,
        "fetched": 10,
        "processed": 7,
        "duplicates": 2,
        "invalid": 1,
        "skipped": 3,
        "errored": 1,
        "total_results": 120,
        "execution_time_ms": 1500,
    }
    fields.update(overrides)
    return FetchSummary(**fields)


class TestFetchCommand:
    """``newsingest fetch``."""

    def test_fetch_passes_options(self, config_path, orchestrator):
        orchestrator.run_fetch.return_value = summary()

        result = runner.invoke(
            app,
            ["--config", str(config_path), "fetch", "--profile", "tech", "--countries", "us", "--limit", "5"],
        )

        assert result.exit_code == 0, result.output
        params = orchestrator.run_fetch.call_args[0][0]
        assert params["countries"] == "us"
        assert params["limit"] == 5
        assert params["categories"] is None
        assert orchestrator.run_fetch.call_args[1] == {"profile": "tech", "triggered_by": "cli"}
        assert "Fetched 10 articles, processed 7" in result.output

    def test_partial_success_warns(self, config_path, orchestrator):
        orchestrator.run_fetch.return_value = summary(status=RunStatus.PARTIAL_SUCCESS, failed=2, errored=3)

        result = runner.invoke(app, ["--config", str(config_path), "fetch"])

        assert result.exit_code == 0
        assert "2 records failed" in result.output

    def test_fetch_error_exits_nonzero(self, config_path, orchestrator):
        orchestrator.run_fetch.side_effect = HttpError(500, attempts=3)

        result = runner.invoke(app, ["--config", str(config_path), "fetch"])

        assert result.exit_code == 1
        assert "API request failed with status: 500" in result.output

    def test_interrupt_exits_130(self, config_path, orchestrator):
        orchestrator.run_fetch.side_effect = KeyboardInterrupt

        result = runner.invoke(app, ["--config", str(config_path), "fetch"])

        assert result.exit_code == 130

    def test_limit_out_of_range(self, config_path, orchestrator):
        result = runner.invoke(app, ["--config", str(config_path), "fetch", "--limit", "500"])

        assert result.exit_code != 0
        orchestrator.run_fetch.assert_not_called()

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["--config", str(tmp_path / "none.yaml"), "fetch"])

        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestListingCommands:
    """``newsingest profiles`` and ``newsingest runs``."""

    def test_profiles(self, config_path):
        result = runner.invoke(app, ["--config", str(config_path), "profiles"])

        assert result.exit_code == 0
        assert "tech" in result.output

    def test_runs(self, config_path):
        run = FetchRun(
            id=9,
            endpoint="http://api.mediastack.com/v1/news?access_key=****1234",
            triggered_by="cron",
            status=RunStatus.FAILED,
            started_at=datetime(2024, 3, 5, 14, 30, tzinfo=timezone.utc),
            error_message="timeout",
        )

        @contextmanager
        def connection(config):
            yield MagicMock()

        with patch("newsingest.cli.runs.get_connection", connection), patch(
            "newsingest.cli.runs.FetchRunRepository"
        ) as repository, patch("newsingest.cli.runs.console", Console(width=200)):
            repository.return_value.recent.return_value = [run]
            result = runner.invoke(app, ["--config", str(config_path), "runs", "--limit", "5"])

        assert result.exit_code == 0, result.output
        assert "2024-03-05 14:30:00" in result.output
        assert repository.return_value.recent.call_args[1] == {"limit": 5}

    def test_runs_empty(self, config_path):
        @contextmanager
        def connection(config):
            yield MagicMock()

        with patch("newsingest.cli.runs.get_connection", connection), patch(
            "newsingest.cli.runs.FetchRunRepository"
        ) as repository:
            repository.return_value.recent.return_value = []
            result = runner.invoke(app, ["--config", str(config_path), "runs"])

        assert result.exit_code == 0
        assert "No fetch runs recorded" in result.output


class TestRegistryListings:
    """``newsingest sources`` and ``newsingest categories``."""

    @staticmethod
    @contextmanager
    def connection(config):
        yield MagicMock()

    def test_sources(self, config_path):
        source = Source(
            mediastack_id="the_guardian",
            name="The Guardian",
            category="world",
            country="gb",
            language="en",
            last_fetched_at=datetime(2024, 3, 5, 14, 30, tzinfo=timezone.utc),
        )

        with patch("newsingest.cli.sources.get_connection", self.connection), patch(
            "newsingest.cli.sources.SourceRepository"
        ) as repository, patch("newsingest.cli.sources.console", Console(width=200)):
            repository.return_value.list_all.return_value = [source]
            result = runner.invoke(app, ["--config", str(config_path), "sources"])

        assert result.exit_code == 0, result.output
        assert "the_guardian" in result.output
        assert "2024-03-05 14:30" in result.output
        repository.return_value.list_all.assert_called_once()

    def test_sources_empty(self, config_path):
        with patch("newsingest.cli.sources.get_connection", self.connection), patch(
            "newsingest.cli.sources.SourceRepository"
        ) as repository:
            repository.return_value.list_all.return_value = []
            result = runner.invoke(app, ["--config", str(config_path), "sources"])

        assert result.exit_code == 0
        assert "No sources registered yet" in result.output

    def test_sources_database_error(self, config_path):
        with patch("newsingest.cli.sources.get_connection", self.connection), patch(
            "newsingest.cli.sources.SourceRepository"
        ) as repository:
            repository.return_value.list_all.side_effect = RuntimeError("relation does not exist")
            result = runner.invoke(app, ["--config", str(config_path), "sources"])

        assert result.exit_code == 1
        assert "Could not read sources" in result.output

    def test_categories(self, config_path):
        categories = [Category(slug="business", name="Business"), Category(slug="unknown", name="Unknown")]

        with patch("newsingest.cli.sources.get_connection", self.connection), patch(
            "newsingest.cli.sources.CategoryRepository"
        ) as repository, patch("newsingest.cli.sources.console", Console(width=200)):
            repository.return_value.list_all.return_value = categories
            result = runner.invoke(app, ["--config", str(config_path), "categories"])

        assert result.exit_code == 0, result.output
        assert "business" in result.output
        assert "Unknown" in result.output
