from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..errors import ConfigurationError
from ..mapping.registry import MapperSpec
from ..models.config_models import DatabaseConfig, UploadConfig

"""Config loader.

- Load a YAML upload config (default: config/upload.yml)
- Validate it against the packaged config_schema.json
- Apply defaults and build UploadConfig
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"


class ConfigError(ConfigurationError):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or invalid, or the data violates the schema
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> UploadConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)

    operation_id = data["operation_id"]
    if operation_id not in data["operations"]:
        raise ConfigError(f"operation_id '{operation_id}' is not defined under operations")

    mapper_raw = data["mapper"]
    # named mapper instances are registered in code; config files select a factory type
    mapper = MapperSpec(
        type=mapper_raw["type"],
        options=mapper_raw.get("options") or {},
    )
    db_raw = data.get("database", {})
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
        url=db_raw.get("url"),
    )
    return UploadConfig(
        source=data["source"],
        operation_id=operation_id,
        operations=data["operations"],
        mapper=mapper,
        sheet=data.get("sheet", 0),
        start_row=data.get("start_row", 0),
        commit_count=data.get("commit_count", 0),
        backend=data.get("backend", "legacy"),
        mapper_instantiation=data.get("mapper_instantiation", "per_batch"),
        page_size=data.get("page_size", 1000),
        keep_na_strings=data.get("keep_na_strings"),
        database=db,
    )
