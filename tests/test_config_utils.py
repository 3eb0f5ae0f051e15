# tests/test_config_utils.py
"""
Tests for config_utils.py - Configuration loading with YAML support
"""
import pytest
import yaml
from pathlib import Path

from linktriage.config_utils import (
    CONFIG_FILENAME,
    ConfigLoader,
    TriageConfig,
    create_config_template,
    get_config,
    with_base_url,
)
from linktriage.errors import ConfigurationError
from linktriage.report import DEFAULT_SKIP_PATTERN


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    """No global config and no LINKTRIAGE_* variables leak into tests"""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for var in ("LINKTRIAGE_BASE_URL", "LINKTRIAGE_REPORT_DIR", "LINKTRIAGE_KEEP_TEMP"):
        monkeypatch.delenv(var, raising=False)


class TestTriageConfig:
    """Tests for TriageConfig dataclass"""

    def test_default_values(self):
        config = TriageConfig()

        assert config.base_url == "https://bblearn.nau.edu/"
        assert config.report_dir is None
        assert config.keep_temp is False
        assert config.skip_name_pattern == DEFAULT_SKIP_PATTERN

    def test_trailing_slash_added(self):
        config = TriageConfig(base_url="https://lms.example.edu")
        assert config.base_url == "https://lms.example.edu/"

    def test_validate_bad_scheme(self):
        issues = TriageConfig(base_url="lms.example.edu").validate()
        assert any("base_url" in issue for issue in issues)

    def test_validate_report_dir_is_file(self, tmp_path):
        target = tmp_path / "report.txt"
        target.write_text("x")
        issues = TriageConfig(report_dir=target).validate()
        assert any("report_dir" in issue for issue in issues)

    def test_valid_defaults(self):
        assert TriageConfig().validate() == []


class TestConfigLoader:
    """Tests for ConfigLoader class"""

    def test_load_from_yaml(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text(
            "base_url: https://lms.example.edu\n"
            "report_dir: reports\n"
            "keep_temp: true\n"
            "skip_name_pattern: '^MEDIA_'\n"
            "department: Biology\n"
        )
        config = ConfigLoader(tmp_path).load()

        assert config.base_url == "https://lms.example.edu/"
        assert config.report_dir == Path("reports")
        assert config.keep_temp is True
        assert config.skip_name_pattern == "^MEDIA_"
        assert config.extra == {"department": "Biology"}
        assert config._sources["base_url"] == CONFIG_FILENAME

    def test_global_config(self, tmp_path):
        global_dir = tmp_path / "home" / ".linktriage"
        global_dir.mkdir(parents=True)
        (global_dir / "config.yaml").write_text("keep_temp: true\n")

        config = ConfigLoader(tmp_path).load()
        assert config.keep_temp is True
        assert config._sources["keep_temp"] == "global"

    def test_local_overrides_global(self, tmp_path):
        global_dir = tmp_path / "home" / ".linktriage"
        global_dir.mkdir(parents=True)
        (global_dir / "config.yaml").write_text("base_url: https://global.example.edu/\n")
        (tmp_path / CONFIG_FILENAME).write_text("base_url: https://local.example.edu/\n")

        assert ConfigLoader(tmp_path).load().base_url == "https://local.example.edu/"

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        (tmp_path / CONFIG_FILENAME).write_text("base_url: https://yaml.example.edu/\nkeep_temp: true\n")
        monkeypatch.setenv("LINKTRIAGE_BASE_URL", "https://env.example.edu")
        monkeypatch.setenv("LINKTRIAGE_KEEP_TEMP", "no")
        monkeypatch.setenv("LINKTRIAGE_REPORT_DIR", str(tmp_path / "out"))

        config = ConfigLoader(tmp_path).load()

        assert config.base_url == "https://env.example.edu/"
        assert config.keep_temp is False
        assert config.report_dir == tmp_path / "out"
        assert config._sources["base_url"] == "env:LINKTRIAGE_BASE_URL"

    def test_invalid_yaml_ignored(self, tmp_path, caplog):
        (tmp_path / CONFIG_FILENAME).write_text("base_url: [unclosed\n")

        config = ConfigLoader(tmp_path).load()

        assert config.base_url == "https://bblearn.nau.edu/"
        assert "[config:warn]" in caplog.text

    def test_non_mapping_ignored(self, tmp_path, caplog):
        (tmp_path / CONFIG_FILENAME).write_text("- just\n- a list\n")

        config = ConfigLoader(tmp_path).load()

        assert config.extra == {}
        assert "expected a mapping" in caplog.text


class TestGetConfig:
    def test_valid(self, tmp_path):
        assert get_config(tmp_path).base_url == "https://bblearn.nau.edu/"

    def test_invalid_raises(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("base_url: ftp://files.example.edu\n")

        with pytest.raises(ConfigurationError) as exc_info:
            get_config(tmp_path)
        assert "base_url" in str(exc_info.value)


class TestConfigTemplate:
    def test_template_loads_as_valid_config(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text(create_config_template())
        config = get_config(tmp_path)

        assert config.skip_name_pattern == DEFAULT_SKIP_PATTERN
        assert config.keep_temp is False

    def test_compact_template(self):
        data = yaml.safe_load(create_config_template(include_comments=False))
        assert set(data) == {"base_url", "keep_temp", "skip_name_pattern"}
        assert "#" not in create_config_template(include_comments=False)


class TestWithBaseUrl:
    """Tests for applying a --base-url override"""

    def test_no_override_returns_same_config(self):
        config = TriageConfig()
        assert with_base_url(config, None) is config

    def test_trailing_slash_added(self):
        config = with_base_url(TriageConfig(), "https://lms.example.edu")

        assert config.base_url == "https://lms.example.edu/"
        assert config._sources["base_url"] == "option:--base-url"

    def test_other_settings_kept(self):
        base = TriageConfig(keep_temp=True, skip_name_pattern="^X")
        config = with_base_url(base, "https://lms.example.edu/")

        assert config.keep_temp is True
        assert config.skip_name_pattern == "^X"
        assert base.base_url == "https://bblearn.nau.edu/"
        assert "base_url" not in base._sources

    def test_invalid_override_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            with_base_url(TriageConfig(), "lms.example.edu")
        assert "option:--base-url" in str(exc_info.value)
