"""Tests for the code-search CLI commands."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner, Result

from codesearch.cli.main import cli
from codesearch.core.errors import IndexingError
from codesearch.index.embedding import EmbeddingService

runner = CliRunner()


@pytest.fixture(autouse=True)
def fake_embedder(embedder: EmbeddingService, monkeypatch: pytest.MonkeyPatch) -> EmbeddingService:
    """Commands get the preloaded fake model instead of downloading one."""
    monkeypatch.setattr("codesearch.cli.index.build_embedder", lambda _config: embedder)
    monkeypatch.setattr("codesearch.cli.search.build_embedder", lambda _config: embedder)
    return embedder


def _invoke(*args: str) -> Result:
    return runner.invoke(cli, list(args))


@pytest.fixture
def indexed(codebase: Path) -> Path:
    result = _invoke("index", str(codebase))
    assert result.exit_code == 0, result.output
    return codebase


class TestGroup:
    def test_help_lists_commands(self) -> None:
        result = _invoke("--help")

        assert result.exit_code == 0
        for name in ("index", "search", "status", "delete", "config"):
            assert name in result.output

    def test_version(self) -> None:
        result = _invoke("--version")

        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestIndexCommand:
    def test_first_run_reports_counts(self, codebase: Path) -> None:
        result = _invoke("index", str(codebase))

        assert result.exit_code == 0, result.output
        assert "Indexed 4 files" in result.output

    def test_rerun_indexes_nothing(self, indexed: Path) -> None:
        result = _invoke("index", str(indexed))

        assert result.exit_code == 0
        assert "Indexed 0 files" in result.output

    def test_force(self, indexed: Path) -> None:
        result = _invoke("index", str(indexed), "--force")

        assert "Indexed 4 files" in result.output

    def test_no_gitignore(self, codebase: Path) -> None:
        result = _invoke("index", str(codebase), "--no-gitignore")

        assert "Indexed 5 files" in result.output

    def test_missing_path_is_usage_error(self, tmp_path: Path) -> None:
        result = _invoke("index", str(tmp_path / "missing"))

        assert result.exit_code == 2

    def test_invalid_config_exits_with_error(self, codebase: Path, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yaml"
        bad.write_text("chunking:\n  chunk_size: 0\n")

        result = _invoke("--config", str(bad), "index", str(codebase))

        assert result.exit_code == 1
        assert "CONFIG_INVALID_VALUE" in result.output


class TestSearchCommand:
    def test_json_output(self, indexed: Path) -> None:
        result = _invoke("search", "tokenize", "--codebase", str(indexed), "-n", "2")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert payload["query"] == "tokenize"
        assert payload["count"] == 2
        top = payload["results"][0]
        assert (top["rank"], top["file_path"], top["language"]) == (1, "src/util.rs", "rust")
        assert top["score"] == pytest.approx(0.6)

    def test_vector_only(self, indexed: Path) -> None:
        result = _invoke("search", "tokenize", "--codebase", str(indexed), "--vector-only")

        payload = json.loads(result.stdout)
        assert payload["count"] == 4
        assert all(r["score"] <= 0.4 + 1e-6 for r in payload["results"])

    def test_no_results_on_empty_index(self) -> None:
        result = _invoke("search", "anything")

        assert result.exit_code == 0
        assert json.loads(result.stdout)["count"] == 0

    def test_pretty_output(self, indexed: Path) -> None:
        result = _invoke("search", "tokenize", "--codebase", str(indexed), "--pretty", "-n", "1")

        assert result.exit_code == 0
        assert "src/util.rs" in result.stdout

    def test_limit_must_be_positive(self) -> None:
        result = _invoke("search", "x", "--limit", "0")

        assert result.exit_code == 2


class TestStatusCommand:
    def test_indexed_codebase_json(self, indexed: Path) -> None:
        result = _invoke("status", str(indexed), "--json")

        data = json.loads(result.stdout)
        assert data["indexed"] is True
        assert (data["files"], data["chunks"]) == (4, 4)

    def test_unindexed_codebase(self, tmp_path: Path) -> None:
        result = _invoke("status", str(tmp_path), "--json")

        assert result.exit_code == 0
        assert json.loads(result.stdout)["indexed"] is False

    def test_totals(self, indexed: Path) -> None:
        result = _invoke("status")

        assert "Codebases: 1" in result.stdout
        assert "Chunks: 4" in result.stdout

    def test_list_json(self, indexed: Path) -> None:
        result = _invoke("status", "--list", "--json")

        [entry] = json.loads(result.stdout)
        assert entry["chunks"] == 4

    def test_list_empty(self) -> None:
        result = _invoke("status", "--list")

        assert "No codebases indexed." in result.stdout


class TestDeleteCommand:
    def test_deletes_chunks_and_manifest(self, indexed: Path) -> None:
        result = _invoke("delete", str(indexed))

        assert result.exit_code == 0, result.output
        assert "Deleted 4 chunks" in result.output
        assert json.loads(_invoke("status", str(indexed), "--json").stdout)["indexed"] is False

    def test_reindex_after_delete_starts_over(self, indexed: Path) -> None:
        _invoke("delete", str(indexed))

        result = _invoke("index", str(indexed))

        assert "Indexed 4 files" in result.output

    def test_manifest_failure_keeps_chunks(self, indexed: Path) -> None:
        failure = IndexingError.manifest_error("manifest.json", "permission denied")
        with patch("codesearch.index.manifest.ManifestStore.delete", side_effect=failure):
            result = _invoke("delete", str(indexed))

        assert result.exit_code == 1
        assert "INDEX_MANIFEST_ERROR" in result.output
        data = json.loads(_invoke("status", str(indexed), "--json").stdout)
        assert data["indexed"] is True
        assert data["chunks"] == 4

    def test_not_indexed_fails(self, tmp_path: Path) -> None:
        result = _invoke("delete", str(tmp_path))

        assert result.exit_code == 1
        assert "INDEX_CODEBASE_NOT_INDEXED" in result.output


class TestConfigCommand:
    def test_path_defaults_to_global(self, tmp_path: Path) -> None:
        result = _invoke("config", "--path")

        assert result.stdout.strip() == str(tmp_path / "no-global-config.yaml")

    def test_path_follows_config_option(self, tmp_path: Path) -> None:
        explicit = tmp_path / "project.yaml"

        result = _invoke("--config", str(explicit), "config", "--path")

        assert result.stdout.strip() == str(explicit)

    def test_create_writes_once(self, tmp_path: Path) -> None:
        first = _invoke("config", "--create")
        second = _invoke("config", "--create")

        assert first.exit_code == 0
        assert (tmp_path / "no-global-config.yaml").exists()
        assert second.exit_code == 1
        assert "already exists" in second.output

    def test_show_effective_config(self, tmp_path: Path) -> None:
        explicit = tmp_path / "project.yaml"
        explicit.write_text("chunking:\n  chunk_size: 80\n")

        result = _invoke("--config", str(explicit), "config")

        data = yaml.safe_load(result.stdout)
        assert data["chunking"]["chunk_size"] == 80
        assert data["database"]["data_dir"] == str(tmp_path / "data")
