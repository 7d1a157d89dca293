"""Front-end configuration, loaded from YAML.

Example ``dynamo.yaml``::

    tab_width: 4
    timespec:
      dt: 0.25
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from .diagnostics import TAB_WIDTH


class ConfigError(Exception):
    pass


class TimespecDefaults(BaseModel):
    """Values used for simulation-control variables a model leaves unset."""

    model_config = ConfigDict(extra="forbid")

    start: float = 0.0
    end: float = 0.0
    dt: float = 1.0
    save_step: float = 1.0


class FrontendConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tab_width: int = TAB_WIDTH  # caret alignment in diagnostics
    model_name: str = "main"  # name given to the parsed model
    timespec: TimespecDefaults = TimespecDefaults()


def load_config(path: str | Path) -> FrontendConfig:
    """Load a config file. An empty file gives the defaults."""
    path = Path(path)
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"{path}: {e}") from e

    if data is None:
        return FrontendConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping at top level")

    try:
        return FrontendConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"{path}: {e}") from e
