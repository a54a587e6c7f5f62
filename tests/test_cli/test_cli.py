"""
Tests para la CLI (click).

Cubre:
- build: escribe index.html, respeta índices manuales, exit codes
- --no-readme
- Grupo sin comando, --version, license, validate-config
"""

import logging
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from autoindex.cli import EXIT_CONFIG_ERROR, EXIT_FAILED, EXIT_PARTIAL, main
from autoindex.indexer import GENERATED_MARKER
from autoindex.indexer.template import VERSION


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def reset_logging():
    """configure_logging engancha handlers al stream de CliRunner; se limpian."""
    yield
    logging.root.handlers.clear()
    structlog.reset_defaults()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def tree(tmp_path: Path) -> Path:
    (tmp_path / "a.txt").write_text("alpha", encoding="utf-8")
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "README.txt").write_text("docs-readme-text", encoding="utf-8")
    manual = tmp_path / "manual"
    manual.mkdir()
    (manual / "index.md").write_text("# mine", encoding="utf-8")
    return tmp_path


# ── Tests: build ──────────────────────────────────────────────────────────


class TestBuild:
    def test_writes_indexes(self, runner: CliRunner, tree: Path) -> None:
        result = runner.invoke(main, ["build", str(tree)])
        assert result.exit_code == 0, result.output

        root_index = (tree / "index.html").read_text(encoding="utf-8")
        assert GENERATED_MARKER in root_index
        assert 'href="docs/"' in root_index

        docs_index = (tree / "docs" / "index.html").read_text(encoding="utf-8")
        assert "docs-readme-text" in docs_index
        assert not (tree / "manual" / "index.html").exists()

        assert "2 indexes written, 1 skipped" in result.output

    def test_rebuild_overwrites_generated(self, runner: CliRunner, tree: Path) -> None:
        runner.invoke(main, ["build", str(tree)])
        (tree / "new.txt").write_text("n", encoding="utf-8")
        result = runner.invoke(main, ["build", str(tree)])
        assert result.exit_code == 0
        assert 'href="new.txt"' in (tree / "index.html").read_text(encoding="utf-8")

    def test_keeps_hand_written_index_html(self, runner: CliRunner, tree: Path) -> None:
        (tree / "docs" / "index.html").write_text("<p>mine</p>", encoding="utf-8")
        result = runner.invoke(main, ["build", str(tree)])
        assert result.exit_code == 0
        assert (tree / "docs" / "index.html").read_text(encoding="utf-8") == "<p>mine</p>"

    def test_excluded_directories_untouched(self, runner: CliRunner, tree: Path) -> None:
        objects = tree / ".git" / "objects"
        objects.mkdir(parents=True)
        result = runner.invoke(main, ["build", str(tree)])
        assert result.exit_code == 0, result.output
        assert not (tree / ".git" / "index.html").exists()
        assert not (objects / "index.html").exists()
        assert "2 indexes written, 1 skipped" in result.output

    def test_no_readme(self, runner: CliRunner, tree: Path) -> None:
        result = runner.invoke(main, ["build", str(tree), "--no-readme"])
        assert result.exit_code == 0
        docs_index = (tree / "docs" / "index.html").read_text(encoding="utf-8")
        assert "docs-readme-text" not in docs_index

    def test_broken_override_is_partial(self, runner: CliRunner, tree: Path) -> None:
        (tree / "docs" / "indexoverwrite.json").write_text("[1, 2]", encoding="utf-8")
        result = runner.invoke(main, ["build", str(tree)])
        assert result.exit_code == EXIT_PARTIAL
        assert "1 failed" in result.output
        # El resto del árbol se genera igualmente
        assert (tree / "index.html").exists()

    def test_quiet(self, runner: CliRunner, tree: Path) -> None:
        result = runner.invoke(main, ["build", str(tree), "--quiet"])
        assert result.exit_code == 0
        assert "indexes written" not in result.output

    def test_missing_directory(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(main, ["build", str(tmp_path / "nope")])
        assert result.exit_code != 0

    def test_invalid_config(self, runner: CliRunner, tree: Path, tmp_path: Path) -> None:
        config = tmp_path / "bad.yaml"
        config.write_text("server:\n  port: 0\n", encoding="utf-8")
        result = runner.invoke(main, ["build", str(tree), "-c", str(config)])
        assert result.exit_code == EXIT_CONFIG_ERROR


# ── Tests: grupo y comandos auxiliares ────────────────────────────────────


class TestMain:
    def test_no_command(self, runner: CliRunner) -> None:
        result = runner.invoke(main, [])
        assert result.exit_code == EXIT_FAILED
        assert "No command specified" in result.output

    def test_unknown_command(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["frobnicate"])
        assert result.exit_code != 0

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert result.output.strip() == VERSION

    def test_license(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["license"])
        assert result.exit_code == 0
        assert "MIT License" in result.output
        assert "WITHOUT WARRANTY" in result.output


class TestValidateConfig:
    def test_valid(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "ok.yaml"
        config.write_text("server:\n  port: 8080\n", encoding="utf-8")
        result = runner.invoke(main, ["validate-config", "-c", str(config)])
        assert result.exit_code == 0
        assert "Valid configuration" in result.output
        assert ":8080" in result.output

    def test_invalid(self, runner: CliRunner, tmp_path: Path) -> None:
        config = tmp_path / "bad.yaml"
        config.write_text("listing:\n  colour: blue\n", encoding="utf-8")
        result = runner.invoke(main, ["validate-config", "-c", str(config)])
        assert result.exit_code == EXIT_CONFIG_ERROR
