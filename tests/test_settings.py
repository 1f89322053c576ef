from __future__ import annotations

from pathlib import Path

import pytest

from roomlock.control.signals import CompilerOptions
from roomlock.exceptions import ConfigurationError
from roomlock.settings import Settings
from roomlock.storage.geometry_store import build_backend, build_store
from roomlock.storage.local import FileRecordBackend
from roomlock.storage.memory import InMemoryRecordBackend


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_from_yaml(tmp_path) -> None:
    config = _write(
        tmp_path / "roomlock.yaml",
        """
store:
  backend: file
  root: {root}
compiler:
  inpaint_strength_min: 0.1
  inpaint_strength_max: 0.25
logging:
  level: debug
""".format(root=tmp_path / "records"),
    )

    settings = Settings.load(config)

    assert settings.store.backend == "file"
    assert settings.store.root == tmp_path / "records"
    assert settings.compiler.inpaint_strength_max == 0.25
    assert settings.logging.level == "DEBUG"


def test_defaults_when_default_file_missing(tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ROOMLOCK_CONFIG", raising=False)

    settings = Settings.load()

    assert settings.store.backend == "memory"
    assert settings.compiler.placement_tolerance_percent == 2.0


def test_missing_explicit_file_raises(tmp_path) -> None:
    with pytest.raises(ConfigurationError):
        Settings.load(tmp_path / "nope.yaml")


def test_env_var_points_at_config(tmp_path, monkeypatch) -> None:
    config = _write(tmp_path / "custom.yaml", "store:\n  ttl_seconds: 5\n")
    monkeypatch.setenv("ROOMLOCK_CONFIG", str(config))

    assert Settings.load().store.ttl_seconds == 5


def test_s3_backend_requires_bucket(tmp_path) -> None:
    config = _write(tmp_path / "s3.yaml", "store:\n  backend: s3\n")
    with pytest.raises(ConfigurationError):
        Settings.load(config)


def test_inverted_strength_range_rejected(tmp_path) -> None:
    config = _write(
        tmp_path / "bad.yaml",
        "compiler:\n  inpaint_strength_min: 0.5\n  inpaint_strength_max: 0.2\n",
    )
    with pytest.raises(ConfigurationError):
        Settings.load(config)


def test_build_backend_from_settings(tmp_path) -> None:
    memory = build_backend(Settings())
    assert isinstance(memory, InMemoryRecordBackend)
    assert memory.ttl_seconds == 3600.0

    file_settings = Settings(store={"backend": "file", "root": str(tmp_path / "geo")})
    assert isinstance(build_backend(file_settings), FileRecordBackend)
    assert isinstance(build_store(file_settings).backend, FileRecordBackend)


def test_compiler_options_from_settings() -> None:
    settings = Settings(compiler={"inpaint_strength_min": 0.05, "placement_tolerance_percent": 1.5})
    options = CompilerOptions.from_settings(settings)

    assert options.inpaint_strength_min == 0.05
    assert options.inpaint_strength_max == 0.3
    assert options.placement_tolerance_percent == 1.5
