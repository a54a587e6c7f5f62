"""
Tests para la carga de configuración.

Cubre:
- Defaults de AppConfig
- YAML, env vars y CLI (precedencia)
- Validación (extra keys, rangos)
- deep_merge
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from autoindex.config import AppConfig, load_config
from autoindex.config.loader import apply_cli_overrides, deep_merge, load_env_overrides


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Evita que variables AUTOINDEX_* del entorno afecten a los tests."""
    for name in ("AUTOINDEX_HOST", "AUTOINDEX_PORT", "AUTOINDEX_LOG_LEVEL", "AUTOINDEX_TEMPLATE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "autoindex.yaml"
    path.write_text(
        "server:\n"
        "  port: 8080\n"
        "  page_cache_ttl: 2.5\n"
        "listing:\n"
        "  embed_readme: false\n"
        "  exclude: ['.git', 'node_modules']\n",
        encoding="utf-8",
    )
    return path


# ── Tests: defaults ───────────────────────────────────────────────────────


class TestDefaults:
    def test_defaults(self) -> None:
        config = load_config()
        assert config.server.host == "0.0.0.0"
        assert config.server.port == 6660
        assert config.server.fs_cache_ttl == 5.0
        assert config.server.page_cache_ttl == 1.0
        assert config.listing.embed_readme is True
        assert config.listing.allow_nofiles is True
        assert config.listing.template is None
        assert config.listing.exclude == [".git", ".gitkeep"]
        assert config.logging.level == "human"


# ── Tests: fuentes ────────────────────────────────────────────────────────


class TestSources:
    def test_yaml(self, config_file: Path) -> None:
        config = load_config(config_path=config_file)
        assert config.server.port == 8080
        assert config.server.page_cache_ttl == 2.5
        assert config.listing.embed_readme is False
        assert config.listing.exclude == [".git", "node_modules"]
        # Claves no presentes conservan el default
        assert config.server.fs_cache_ttl == 5.0

    def test_empty_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(config_path=path) == AppConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nope.yaml")

    def test_env_overrides_yaml(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("AUTOINDEX_PORT", "9000")
        monkeypatch.setenv("AUTOINDEX_LOG_LEVEL", "DEBUG")
        config = load_config(config_path=config_file)
        assert config.server.port == 9000
        assert config.logging.level == "debug"

    def test_cli_overrides_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTOINDEX_PORT", "9000")
        config = load_config(cli_args={"port": 7000, "no_nofiles": True, "verbose": 2})
        assert config.server.port == 7000
        assert config.listing.allow_nofiles is False
        assert config.logging.verbose == 2

    def test_unset_cli_flags_do_not_override(self, config_file: Path) -> None:
        config = load_config(
            config_path=config_file,
            cli_args={"port": None, "host": None, "no_readme": False, "verbose": 0},
        )
        assert config.server.port == 8080

    def test_env_overrides_helper(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTOINDEX_TEMPLATE", "/tmp/t.html")
        assert load_env_overrides() == {"listing": {"template": "/tmp/t.html"}}

    def test_cli_template(self) -> None:
        merged = apply_cli_overrides({}, {"template": Path("t.html"), "no_readme": True})
        assert merged == {"listing": {"template": Path("t.html"), "embed_readme": False}}


# ── Tests: validación ─────────────────────────────────────────────────────


class TestValidation:
    def test_extra_keys_forbidden(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("server:\n  colour: blue\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(config_path=path)

    @pytest.mark.parametrize("port", [0, 70000])
    def test_port_range(self, port: int) -> None:
        with pytest.raises(ValidationError):
            load_config(cli_args={"port": port})

    def test_ttl_must_be_positive(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("server:\n  fs_cache_ttl: 0\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_config(config_path=path)

    def test_unknown_log_level(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AUTOINDEX_LOG_LEVEL", "loud")
        with pytest.raises(ValidationError):
            load_config()


# ── Tests: deep_merge ─────────────────────────────────────────────────────


class TestDeepMerge:
    def test_nested(self) -> None:
        base = {"a": {"b": 1, "c": 2}, "d": 3}
        override = {"a": {"b": 99}, "e": 4}
        assert deep_merge(base, override) == {"a": {"b": 99, "c": 2}, "d": 3, "e": 4}

    def test_does_not_mutate_base(self) -> None:
        base = {"a": {"b": 1}}
        deep_merge(base, {"a": {"b": 2}})
        assert base == {"a": {"b": 1}}
