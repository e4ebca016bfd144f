"""Configuration models for logseq-quartz."""

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


class ConverterConfig(BaseModel):
    """Settings for one conversion run."""

    input_dir: Path = Field(
        ...,
        description="Path to Logseq graph root (contains pages/, journals/, logseq/)"
    )

    output_dir: Path = Field(
        default=Path("quartz-content"),
        description="Output directory for generated markdown"
    )

    include_private: bool = Field(
        default=False,
        description="Publish pages marked with private:: true"
    )

    create_stubs: bool = Field(
        default=True,
        description="Write placeholder pages for links to missing pages"
    )

    git_dates: bool = Field(
        default=True,
        description="Add created/modified front matter dates from git history"
    )

    workers: int = Field(
        default=4,
        ge=1,
        le=64,
        description="Worker threads used for indexing and transforming pages"
    )

    query_table: bool = Field(
        default=True,
        description="Render query results as tables unless a query sets query-table:: false"
    )

    @field_validator("input_dir")
    @classmethod
    def validate_input_dir(cls, v: Path) -> Path:
        """Validate graph path exists and is a directory."""
        path = Path(v).expanduser()
        if not path.exists():
            raise ValueError(f"Graph path does not exist: {path}")
        if not path.is_dir():
            raise ValueError(f"Graph path is not a directory: {path}")
        return path

    @field_validator("output_dir")
    @classmethod
    def expand_output_dir(cls, v: Path) -> Path:
        """Expand ~ in the output path."""
        return Path(v).expanduser()

    @classmethod
    def load(cls, path: Optional[Path] = None, **overrides: Any) -> "ConverterConfig":
        """
        Load configuration from an optional YAML file plus overrides.

        Values passed as overrides win over values from the file; overrides
        that are None are ignored so unset CLI flags fall through.

        Args:
            path: Path to a YAML file with ConverterConfig keys, or None
            **overrides: Field values that take precedence over the file

        Returns:
            Validated ConverterConfig instance

        Raises:
            FileNotFoundError: If path is given but doesn't exist
            ValueError: If YAML is invalid or validation fails
        """
        data: dict[str, Any] = {}

        if path is not None:
            if not path.exists():
                raise FileNotFoundError(
                    f"Configuration file not found at {path}\n\n"
                    f"Example:\n\n"
                    f"input_dir: ~/Documents/logseq-graph\n"
                    f"output_dir: quartz/content\n"
                    f"include_private: false\n"
                    f"create_stubs: true\n"
                    f"workers: 4\n"
                )

            with open(path) as f:
                try:
                    loaded = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid YAML in {path}: {e}") from e

            if loaded is not None and not isinstance(loaded, dict):
                raise ValueError(f"Configuration file must contain a mapping: {path}")
            data.update(loaded or {})

        data.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**data)

    model_config = {"frozen": True}
