from __future__ import annotations

from pathlib import Path

from hymnal import runtime_paths


def test_source_package_root_points_to_repo_package() -> None:
    root = runtime_paths.package_root()
    assert root.name == "hymnal"
    assert (root / "theme").exists()


def test_source_theme_tables_path_resolves() -> None:
    assert runtime_paths.builtin_theme_root().name == "builtin"
    assert runtime_paths.theme_tables_path().is_file()


def test_frozen_prefers_meipass_hymnal_dir(tmp_path: Path, monkeypatch) -> None:
    bundle_root = tmp_path / "bundle"
    package_root = bundle_root / "hymnal"
    package_root.mkdir(parents=True)
    monkeypatch.setattr(runtime_paths.sys, "frozen", True, raising=False)
    monkeypatch.setattr(runtime_paths.sys, "_MEIPASS", str(bundle_root), raising=False)

    assert runtime_paths.package_root() == package_root
    assert runtime_paths.theme_tables_path() == package_root / "theme" / "builtin" / "themes.yaml"


def test_frozen_falls_back_to_meipass_when_hymnal_missing(tmp_path: Path, monkeypatch) -> None:
    bundle_root = tmp_path / "bundle"
    bundle_root.mkdir(parents=True)
    monkeypatch.setattr(runtime_paths.sys, "frozen", True, raising=False)
    monkeypatch.setattr(runtime_paths.sys, "_MEIPASS", str(bundle_root), raising=False)

    assert runtime_paths.package_root() == bundle_root


def test_is_frozen_follows_pyinstaller_flag(monkeypatch) -> None:
    monkeypatch.delattr(runtime_paths.sys, "frozen", raising=False)
    assert runtime_paths.is_frozen() is False
    monkeypatch.setattr(runtime_paths.sys, "frozen", True, raising=False)
    assert runtime_paths.is_frozen() is True
