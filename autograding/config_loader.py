"""
Configuration loader for the autograding system.

Handles parsing and validation of the optional YAML configuration file.
"""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field

from .config import (
    DEFAULT_REPORT_PATH,
    EXECUTION_TIMEOUT_SECONDS,
    JUNIT_REPORT_FILENAME,
    TEST_COMMAND,
)


class AutogradingConfig(BaseModel):
    """
    Configuration model for running and validating the exercises.
    """
    project_dir: Path = Field(Path("."), description="Directory the test command runs in")
    test_command: list[str] = Field(
        default_factory=lambda: list(TEST_COMMAND), min_length=1, description="Test command and arguments"
    )
    result_format: Literal["jest-json", "junit-xml"] = Field(
        "jest-json", description="Where the test results come from"
    )
    junit_report_path: Path = Field(
        Path(JUNIT_REPORT_FILENAME), description="JUnit XML file written by the test command"
    )
    report_path: Path = Field(DEFAULT_REPORT_PATH, description="Where the scoring report is saved")
    timeout_seconds: int = Field(EXECUTION_TIMEOUT_SECONDS, gt=0, description="Test command timeout")

    def junit_report_file(self) -> Path:
        """JUnit report location; relative paths are taken from project_dir."""
        return self.project_dir / self.junit_report_path


def load_config(config_path: Path | None = None, required: bool = False) -> AutogradingConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.
        required: Fail if the file does not exist instead of using defaults.

    Returns:
        AutogradingConfig object with loaded values.

    Raises:
        FileNotFoundError: If a required config file doesn't exist.
        yaml.YAMLError: If config file is invalid YAML.
        ValidationError: If config data is invalid.
    """
    if config_path is None or not config_path.exists():
        if required:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        return AutogradingConfig()

    with open(config_path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f)

    if not config_data:
        return AutogradingConfig()

    if not isinstance(config_data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {config_path}")

    # Resolve relative paths relative to the config file location
    config_dir = config_path.parent

    if config_data.get("project_dir"):
        project_dir = Path(config_data["project_dir"])
        if not project_dir.is_absolute():
            project_dir = config_dir / project_dir
        config_data["project_dir"] = project_dir
    else:
        config_data["project_dir"] = config_dir

    # The report lives next to the config file unless absolute
    if config_data.get("report_path"):
        report_path = Path(config_data["report_path"])
        if not report_path.is_absolute():
            config_data["report_path"] = config_dir / report_path
    else:
        config_data["report_path"] = config_dir / DEFAULT_REPORT_PATH

    return AutogradingConfig(**config_data)
