"""Configuration loading and validation using Pydantic models.

Loads server configuration from a YAML file. Every setting has a default,
so the server also runs with no configuration file at all.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CRD_GROUPS = ["harvesterhci.io", "kubevirt.io", "cdi.kubevirt.io"]


class ServerConfig(BaseModel):
    """Top-level server configuration loaded from server.yaml."""

    kubeconfig: str | None = Field(
        default=None,
        description="Path to a kubeconfig file. When unset, in-cluster "
        "configuration is tried first, then $KUBECONFIG or ~/.kube/config.",
    )
    context: str | None = None
    command_timeout: int = Field(default=30, ge=1, le=300)
    audit_log_path: str = "./logs/audit.jsonl"
    read_only: bool = False
    crd_groups: list[str] = Field(default_factory=lambda: list(DEFAULT_CRD_GROUPS))

    @field_validator("kubeconfig")
    @classmethod
    def expand_kubeconfig(cls, v: str | None) -> str | None:
        """Expand ~ in the kubeconfig path to the actual home directory."""
        if v is not None:
            return str(Path(v).expanduser())
        return v

    @field_validator("crd_groups")
    @classmethod
    def normalize_groups(cls, v: list[str]) -> list[str]:
        """Lowercase API group names and drop blanks."""
        return [group.strip().lower() for group in v if group.strip()]


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load and parse a YAML file, returning an empty dict if missing."""
    if not path.exists():
        return {}
    with open(path) as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def load_config(path: str | Path | None = None, **overrides: Any) -> ServerConfig:
    """Load server configuration.

    Args:
        path: YAML file to read. A missing file yields the defaults.
        **overrides: Values that take precedence over the file, typically
            from command-line flags. ``None`` values are ignored.

    Returns:
        The validated configuration.

    Raises:
        pydantic.ValidationError: If the file or overrides have invalid values.
        yaml.YAMLError: If the file is not valid YAML.
    """
    data = _load_yaml(Path(path)) if path is not None else {}
    data.update({key: value for key, value in overrides.items() if value is not None})
    return ServerConfig(**data)
