"""
Tests for settings loading — snapflat.yml parsing and validation.
"""

import textwrap
from pathlib import Path

import pytest

from snapflat.core.config.loader import find_settings_file, load_settings
from snapflat.core.errors import SettingsError
from snapflat.core.models.settings import FLATHUB_URL


@pytest.fixture
def settings_yml(tmp_path: Path) -> Path:
    content = textwrap.dedent("""\
        flathub_url: https://mirror.example.org/flathub.flatpakrepo
        base_packages:
          - ca-certificates
          - curl
        snap_core_retry_delay: 5
        gnome_software_packages:
          - [gnome-software, gnome-software-plugin-flatpak]
    """)
    path = tmp_path / "snapflat.yml"
    path.write_text(content)
    return path


class TestLoadSettings:
    def test_defaults_without_file(self):
        settings = load_settings(environ={})
        assert settings.flathub_url == FLATHUB_URL
        assert settings.base_packages == ["ca-certificates", "curl", "gnupg"]
        assert settings.kde_discover_markers == ["plasma-discover", "discover"]
        assert not settings.dry_run

    def test_load_file(self, settings_yml: Path):
        settings = load_settings(settings_yml, environ={})
        assert settings.flathub_url.startswith("https://mirror.example.org")
        assert settings.base_packages == ["ca-certificates", "curl"]
        assert settings.snap_core_retry_delay == 5
        assert settings.gnome_software_packages == [["gnome-software", "gnome-software-plugin-flatpak"]]
        # untouched fields keep their defaults
        assert len(settings.kde_discover_packages) == 6

    def test_wrapped_under_key(self, tmp_path: Path):
        path = tmp_path / "snapflat.yml"
        path.write_text("snapflat:\n  flathub_remote: hub\n")
        assert load_settings(path, environ={}).flathub_remote == "hub"

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "snapflat.yml"
        path.write_text("")
        assert load_settings(path, environ={}).flathub_remote == "flathub"

    def test_env_var_path(self, settings_yml: Path):
        settings = load_settings(environ={"SNAPFLAT_CONFIG": str(settings_yml)})
        assert settings.snap_core_retry_delay == 5

    def test_missing_explicit_file(self, tmp_path: Path):
        with pytest.raises(SettingsError, match="not found"):
            load_settings(environ={"SNAPFLAT_CONFIG": str(tmp_path / "nope.yml")})

    def test_invalid_yaml(self, tmp_path: Path):
        path = tmp_path / "snapflat.yml"
        path.write_text("base_packages: [unclosed\n")
        with pytest.raises(SettingsError, match="Invalid YAML"):
            load_settings(path, environ={})

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "snapflat.yml"
        path.write_text("- a\n- b\n")
        with pytest.raises(SettingsError, match="mapping"):
            load_settings(path, environ={})

    def test_schema_violation(self, tmp_path: Path):
        path = tmp_path / "snapflat.yml"
        path.write_text("snap_core_retry_delay: -1\n")
        with pytest.raises(SettingsError, match="Invalid settings") as exc:
            load_settings(path, environ={})
        assert exc.value.exit_code == 2

    def test_empty_store_chain_rejected(self, tmp_path: Path):
        path = tmp_path / "snapflat.yml"
        path.write_text("kde_discover_packages: []\n")
        with pytest.raises(SettingsError):
            load_settings(path, environ={})

    @pytest.mark.parametrize("value, expected", [("1", True), ("yes", True), ("0", False), ("off", False)])
    def test_dry_run_env(self, value, expected):
        assert load_settings(environ={"SNAPFLAT_DRY_RUN": value}).dry_run is expected

    def test_dry_run_env_overrides_file(self, tmp_path: Path):
        path = tmp_path / "snapflat.yml"
        path.write_text("dry_run: true\n")
        assert load_settings(path, environ={"SNAPFLAT_DRY_RUN": "0"}).dry_run is False


class TestFindSettingsFile:
    def test_explicit_env(self, tmp_path: Path):
        assert find_settings_file({"SNAPFLAT_CONFIG": str(tmp_path / "x.yml")}) == tmp_path / "x.yml"

    def test_default_path_absent(self, monkeypatch, tmp_path: Path):
        monkeypatch.setattr(
            "snapflat.core.config.loader.DEFAULT_SETTINGS_PATH", tmp_path / "missing.yml"
        )
        assert find_settings_file({}) is None
