"""Configuration management for selectrunner."""

import json
import os
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field, field_validator

SUITES_FOLDER = "./src/test/resources/suites/"
TESTS_XML_PROPERTY = "testsXml"


class SuiteConfig(BaseModel):
    """Where the XML suite lives."""

    suites_dir: str = Field(default=SUITES_FOLDER, description="Directory holding suite XML files")
    tests_xml: Optional[str] = Field(
        default=None,
        description=f"Suite file name inside suites_dir (defaults to the {TESTS_XML_PROPERTY} environment variable)",
    )

    @field_validator("suites_dir")
    @classmethod
    def validate_suites_dir(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Suites directory cannot be empty")
        return v

    @field_validator("tests_xml")
    @classmethod
    def validate_tests_xml(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Suite file name cannot be empty")
        return v

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SuiteConfig":
        """Build a config whose suite name comes from the testsXml variable."""
        if environ is None:
            environ = os.environ
        tests_xml = environ.get(TESTS_XML_PROPERTY) or None
        return cls(tests_xml=tests_xml)

    def suite_path(self, base_dir: Path | str | None = None) -> Optional[Path]:
        """Return the suite file path, or None when no suite is named."""
        if self.tests_xml is None:
            return None
        suites_dir = Path(self.suites_dir)
        if base_dir is not None and not suites_dir.is_absolute():
            suites_dir = Path(base_dir) / suites_dir
        return suites_dir / self.tests_xml


class ExecutionConfig(BaseModel):
    """How test methods are dispatched."""

    scheduler: str = Field(default="synchronous", description="Method scheduler (synchronous, parallel)")
    max_workers: int = Field(default=4, description="Worker threads for the parallel scheduler")

    @field_validator("scheduler")
    @classmethod
    def validate_scheduler(cls, v: str) -> str:
        allowed = {"synchronous", "parallel"}
        if v.lower() not in allowed:
            raise ValueError(f"Scheduler must be one of: {allowed}")
        return v.lower()

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("At least one worker is required")
        return v


class SelectRunnerConfig(BaseModel):
    """Main configuration for selectrunner."""

    suite: SuiteConfig = Field(default_factory=SuiteConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)
    log_level: str = Field(default="WARNING", description="Logging level for the CLI")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @classmethod
    def from_file(cls, path: Path | str) -> "SelectRunnerConfig":
        """Load configuration from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = json.load(f)

        return cls.model_validate(data)

    @classmethod
    def find_and_load(cls, start_dir: Path | str | None = None) -> "SelectRunnerConfig":
        """Find and load configuration file, searching up the directory tree."""
        if start_dir is None:
            start_dir = Path.cwd()
        else:
            start_dir = Path(start_dir)

        config_names = ["selectrunner.json", ".selectrunner.json"]

        current = start_dir.resolve()
        while True:
            for name in config_names:
                config_path = current / name
                if config_path.exists():
                    return cls.from_file(config_path)
            if current == current.parent:
                break
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Create selectrunner.json or run 'selectrunner init'"
        )

    def to_file(self, path: Path | str) -> None:
        """Save configuration to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)

    def with_environment(self, environ: Optional[Mapping[str, str]] = None) -> "SelectRunnerConfig":
        """Fill in the suite name from the environment when the file leaves it unset."""
        if self.suite.tests_xml is not None:
            return self
        from_env = SuiteConfig.from_env(environ)
        suite = self.suite.model_copy(update={"tests_xml": from_env.tests_xml})
        return self.model_copy(update={"suite": suite})


def get_default_config() -> SelectRunnerConfig:
    """Return a default configuration."""
    return SelectRunnerConfig(
        suite=SuiteConfig(suites_dir=SUITES_FOLDER),
        execution=ExecutionConfig(scheduler="synchronous"),
    )


def create_example_config(output_path: Path | str) -> Path:
    """Create an example configuration file."""
    output_path = Path(output_path)
    config = get_default_config()
    config.suite.tests_xml = "smoke.xml"
    config.to_file(output_path)
    return output_path
