"""Unit tests for the Typer CLI."""

import json
import logging

import pytest
from typer.testing import CliRunner

from config.settings import reset_config
from src.cli.app import app
from src.core.factory import reset_price_service

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_env(tmp_path, monkeypatch):
    """Point the CLI at a throwaway SQLite store and keep logging quiet."""
    monkeypatch.setenv("TICKERWIN_STATE_DIR", str(tmp_path))
    monkeypatch.setenv("TICKERWIN_STORE_BACKEND", "sqlite")
    monkeypatch.setenv("TICKERWIN_LOG_LEVEL", "ERROR")
    reset_config()
    reset_price_service()

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level

    yield tmp_path

    root.handlers[:] = handlers
    root.setLevel(level)
    reset_config()
    reset_price_service()


class TestSeedAndQuery:
    """Tests for seeding and the query commands."""

    def test_seed(self):
        """Should report the inserted entries."""
        result = runner.invoke(app, ["seed"])

        assert result.exit_code == 0
        assert "Inserted 7 stock price entries" in result.output

    def test_history_json(self):
        """Should list NVDA samples ascending as JSON."""
        runner.invoke(app, ["seed"])

        result = runner.invoke(app, ["history", "NVDA", "--minutes", "60", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [d["price"] for d in data] == [231.95296, 124.95156, 459.09558]
        assert all(d["observedAt"].endswith("Z") for d in data)

    def test_history_table(self):
        """Should render a table for known tickers."""
        runner.invoke(app, ["seed"])

        result = runner.invoke(app, ["history", "PYPL"])

        assert result.exit_code == 0
        assert "680.59766" in result.output

    def test_history_empty(self):
        """Should say so when nothing is in the window."""
        result = runner.invoke(app, ["history", "MISSING"])

        assert result.exit_code == 0
        assert "No samples" in result.output

    def test_average_json(self):
        """Should print the average and history."""
        runner.invoke(app, ["seed"])

        result = runner.invoke(app, ["average", "NVDA", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["averageStockPrice"] == pytest.approx(816.0001 / 3)
        assert len(data["priceHistory"]) == 3

    def test_average_missing(self):
        """Should exit 1 when no data is available."""
        result = runner.invoke(app, ["average", "MISSING"])

        assert result.exit_code == 1
        assert "No price history" in result.output

    def test_average_unsupported_aggregation(self):
        """Should exit 1 on unsupported aggregation."""
        runner.invoke(app, ["seed"])

        result = runner.invoke(app, ["average", "NVDA", "--aggregation", "median"])

        assert result.exit_code == 1
        assert "Unsupported aggregation" in result.output

    def test_correlate_disjoint(self):
        """Should report zero correlation for series that never align."""
        runner.invoke(app, ["seed"])

        result = runner.invoke(app, ["correlate", "NVDA", "GOOGL", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["correlation"] == 0.0
        assert data["sampleSize"] == 0
        assert set(data["stocks"]) == {"NVDA", "GOOGL"}

    def test_correlate_table(self):
        """Should render a panel and per-ticker tables."""
        runner.invoke(app, ["seed"])

        result = runner.invoke(app, ["correlate", "NVDA", "GOOGL", "--tolerance", "600"])

        assert result.exit_code == 0
        assert "Correlation" in result.output

    @pytest.mark.parametrize("tickers", [["NVDA"], ["NVDA", "GOOGL", "PYPL"]])
    def test_correlate_wrong_ticker_count(self, tickers):
        """Should exit 1 unless exactly two tickers are given."""
        result = runner.invoke(app, ["correlate", *tickers])

        assert result.exit_code == 1
        assert "Exactly two tickers" in result.output


class TestIngest:
    """Tests for the ingest command."""

    def test_ingest_and_read_back(self):
        """Should store a sample visible to history."""
        result = runner.invoke(app, ["ingest", "TSLA", "250.5"])

        assert result.exit_code == 0
        assert "Stored TSLA" in result.output

        history = runner.invoke(app, ["history", "TSLA", "--json"])
        assert [d["price"] for d in json.loads(history.output)] == [250.5]

    def test_ingest_non_finite(self):
        """Should reject NaN prices."""
        result = runner.invoke(app, ["ingest", "TSLA", "nan"])

        assert result.exit_code == 1

    def test_ingest_bad_timestamp(self):
        """Should reject unparseable --at values."""
        result = runner.invoke(app, ["ingest", "TSLA", "1.0", "--at", "yesterday"])

        assert result.exit_code == 1
        assert "invalid --at" in result.output

    def test_ingest_old_sample_expired(self):
        """Should accept a sample older than retention but never show it."""
        result = runner.invoke(app, ["ingest", "TSLA", "1.0", "--at", "2000-01-01T00:00:00Z"])

        assert result.exit_code == 0

        history = runner.invoke(app, ["history", "TSLA", "--json"])
        assert json.loads(history.output) == []


class TestMaintenance:
    """Tests for stats, expire and version."""

    def test_stats_empty(self):
        """Should report an empty store."""
        result = runner.invoke(app, ["stats"])

        assert result.exit_code == 0
        assert "Store is empty" in result.output

    def test_stats_after_seed(self):
        """Should list tickers and totals."""
        runner.invoke(app, ["seed"])

        result = runner.invoke(app, ["stats"])

        assert result.exit_code == 0
        assert "NVDA" in result.output
        assert "Total: 7" in result.output

    def test_expire(self):
        """Should remove samples that are already expired."""
        runner.invoke(app, ["ingest", "TSLA", "1.0", "--at", "2000-01-01T00:00:00Z"])

        result = runner.invoke(app, ["expire"])

        assert result.exit_code == 0
        assert "Removed 1 expired samples" in result.output

    def test_version(self):
        """Should print the version."""
        from src import __version__

        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output
