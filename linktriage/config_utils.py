# config_utils.py - YAML Configuration System for linktriage
"""
linktriage configuration utilities with YAML file support.

Configuration Resolution Order (highest to lowest priority):
1. Environment variables (LINKTRIAGE_BASE_URL, LINKTRIAGE_REPORT_DIR, ...)
2. linktriage.yaml in the working directory
3. ~/.linktriage/config.yaml (global defaults)

Usage:
    from linktriage.config_utils import get_config

    config = get_config()
    print(config.base_url)
"""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from linktriage.classifier import DEFAULT_BASE_URL
from linktriage.errors import ConfigurationError
from linktriage.report import DEFAULT_SKIP_PATTERN

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "linktriage.yaml"
TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class TriageConfig:
    """Complete linktriage configuration"""
    # LMS base URL substituted for the editor's request-URL placeholder
    base_url: str = DEFAULT_BASE_URL

    # Where reports go (None = next to each archive)
    report_dir: Optional[Path] = None

    # Leave extracted exports on disk after a run
    keep_temp: bool = False

    # HTML pages whose title matches are left out of the report
    skip_name_pattern: str = DEFAULT_SKIP_PATTERN

    # Extra settings from config file
    extra: Dict[str, Any] = field(default_factory=dict)

    # Track where values came from (for debugging)
    _sources: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.base_url and not self.base_url.endswith("/"):
            self.base_url += "/"

    def validate(self) -> List[str]:
        """List of configuration problems (empty when valid)"""
        issues = []
        if not self.base_url.startswith(("http://", "https://")):
            issues.append(f"base_url must start with http:// or https:// (got '{self.base_url}')")
        if self.report_dir is not None and self.report_dir.exists() and not self.report_dir.is_dir():
            issues.append(f"report_dir is not a directory: {self.report_dir}")
        return issues


class ConfigLoader:
    """Load configuration from multiple sources"""

    def __init__(self, work_dir: Optional[Path] = None):
        self.work_dir = Path(work_dir) if work_dir else Path.cwd()
        self.config = TriageConfig()

    def load(self) -> TriageConfig:
        """Load configuration from all sources in priority order"""
        # Load in reverse priority (lowest first, higher overwrites)
        self._load_global_config()
        self._load_yaml_config()
        self._load_env_vars()
        self.config.__post_init__()
        return self.config

    def _load_global_config(self):
        """Load ~/.linktriage/config.yaml if it exists"""
        global_config = Path.home() / ".linktriage" / "config.yaml"
        if global_config.exists():
            self._load_yaml_file(global_config, "global")

    def _load_yaml_config(self):
        """Load linktriage.yaml from the working directory"""
        yaml_path = self.work_dir / CONFIG_FILENAME
        if yaml_path.exists():
            self._load_yaml_file(yaml_path, CONFIG_FILENAME)

    def _load_yaml_file(self, path: Path, source_name: str):
        """Load settings from a YAML file"""
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except (yaml.YAMLError, OSError) as e:
            logger.warning(f"[config:warn] Failed to parse {path}: {e}")
            return

        if not isinstance(data, dict):
            logger.warning(f"[config:warn] Ignoring {path}: expected a mapping at top level")
            return

        if "base_url" in data:
            self.config.base_url = str(data["base_url"])
            self.config._sources["base_url"] = source_name

        if data.get("report_dir"):
            self.config.report_dir = Path(data["report_dir"]).expanduser()
            self.config._sources["report_dir"] = source_name

        if "keep_temp" in data:
            self.config.keep_temp = bool(data["keep_temp"])
            self.config._sources["keep_temp"] = source_name

        if "skip_name_pattern" in data:
            self.config.skip_name_pattern = str(data["skip_name_pattern"])
            self.config._sources["skip_name_pattern"] = source_name

        known_keys = {"base_url", "report_dir", "keep_temp", "skip_name_pattern"}
        for key, value in data.items():
            if key not in known_keys:
                self.config.extra[key] = value
                logger.debug(f"[config] Unrecognized setting {key!r} in {path.name} kept in extra")

    def _load_env_vars(self):
        """Load from environment variables (highest priority)"""
        if os.environ.get("LINKTRIAGE_BASE_URL"):
            self.config.base_url = os.environ["LINKTRIAGE_BASE_URL"]
            self.config._sources["base_url"] = "env:LINKTRIAGE_BASE_URL"

        if os.environ.get("LINKTRIAGE_REPORT_DIR"):
            self.config.report_dir = Path(os.environ["LINKTRIAGE_REPORT_DIR"]).expanduser()
            self.config._sources["report_dir"] = "env:LINKTRIAGE_REPORT_DIR"

        keep_temp = os.environ.get("LINKTRIAGE_KEEP_TEMP")
        if keep_temp is not None:
            self.config.keep_temp = keep_temp.lower() in TRUTHY
            self.config._sources["keep_temp"] = "env:LINKTRIAGE_KEEP_TEMP"


# ============================================================================
# Public API
# ============================================================================

def _check(config: TriageConfig) -> TriageConfig:
    issues = config.validate()
    if issues:
        raise ConfigurationError(
            message="Invalid linktriage configuration",
            suggestion=(
                "Fix the values in linktriage.yaml or the LINKTRIAGE_* environment variables.\n"
                "  Run: linktriage init  to create a commented template"
            ),
            context={
                "problems": "; ".join(issues),
                "sources": config._sources or "defaults",
            },
        )
    return config


def get_config(work_dir: Optional[Path] = None) -> TriageConfig:
    """
    Get complete linktriage configuration.

    Raises:
        ConfigurationError: If the resolved configuration is invalid
    """
    return _check(ConfigLoader(work_dir).load())


def with_base_url(config: TriageConfig, base_url: Optional[str]) -> TriageConfig:
    """
    Copy of config with a command-line base URL applied.

    The override gets the same trailing-slash normalization and validation
    as file and environment values.

    Raises:
        ConfigurationError: If the override is not an http(s) URL
    """
    if not base_url:
        return config
    sources = dict(config._sources, base_url="option:--base-url")
    return _check(replace(config, base_url=base_url, _sources=sources))


def create_config_template(include_comments: bool = True) -> str:
    """
    Generate a linktriage.yaml template.

    Returns:
        YAML string ready to write to file
    """
    if include_comments:
        return f'''# linktriage Configuration File

# LMS base URL (used for the editor's URL placeholder and x-id links)
base_url: {DEFAULT_BASE_URL}

# Directory for .xlsx reports (default: next to each export archive)
# report_dir: ~/triage-reports

# Keep extracted exports on disk after a run (for debugging)
keep_temp: false

# HTML pages whose title matches this regex are left out of the report
skip_name_pattern: "{DEFAULT_SKIP_PATTERN}"
'''
    else:
        return f'''base_url: {DEFAULT_BASE_URL}
keep_temp: false
skip_name_pattern: "{DEFAULT_SKIP_PATTERN}"
'''
