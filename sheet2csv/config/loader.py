from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import ExportConfig
from ..models.whitelist import DEFAULT_DATES_WHITELIST

"""Config loader.

Responsibilities:
- Load the optional YAML file (--config PATH, else config/export.yml if present)
- Validate it against the bundled JSON schema
- Apply environment overrides (.env is loaded by the CLI beforehand)
- Merge CLI values on top

Precedence: CLI flag > environment > YAML > defaults.
"""

SCHEMA_PATH = Path(__file__).parent / "export_schema.json"
DEFAULT_CONFIG_PATH = Path("config/export.yml")

# 環境変数 -> 設定キー
ENV_OVERRIDES = {
    "SHEET2CSV_SHEET": "sheet",
    "SHEET2CSV_DATES_WHITELIST": "dates_whitelist",
    "SHEET2CSV_DEFAULT_DELIMITER": "delimiter",
}

_DEFAULTS: dict[str, Any] = {
    "sheet": "0",
    "list_sheets": False,
    "flexible": False,
    "trim": False,
    "dates_whitelist": DEFAULT_DATES_WHITELIST,
    "delimiter": None,
    "output": None,
    "error_log_dir": None,
}


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or validation failure
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


def load_yaml_config(path: Path) -> dict[str, Any]:
    """Read and validate a YAML config file."""
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config validation failed: top level must be a mapping, got {type(data).__name__}")
    _validate_config_schema(data)
    return data


def _normalize_delimiter(value: str | None) -> str | None:
    if value is None:
        return None
    if value == r"\t":
        return "\t"
    if len(value) != 1:
        raise ConfigError(f"delimiter must be a single character: {value!r}")
    return value


def load_config(
    cli_values: Mapping[str, Any] | None = None,
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ExportConfig:
    """Build the effective ExportConfig.

    Args:
        cli_values: values from argparse; None entries mean "not given"
        config_path: explicit YAML path (must exist); None -> DEFAULT_CONFIG_PATH if present
        environ: environment mapping (defaults to os.environ)
    """
    merged: dict[str, Any] = dict(_DEFAULTS)

    if config_path is not None:
        merged.update(load_yaml_config(config_path))
    elif DEFAULT_CONFIG_PATH.exists():
        merged.update(load_yaml_config(DEFAULT_CONFIG_PATH))

    env = os.environ if environ is None else environ
    for var, key in ENV_OVERRIDES.items():
        val = env.get(var)
        if val:
            merged[key] = val

    input_path = None
    if cli_values:
        for key, val in cli_values.items():
            if key == "input_path":
                input_path = val
            elif val is not None:
                merged[key] = val

    return ExportConfig(
        input_path=input_path,
        sheet=str(merged["sheet"]),
        list_sheets=bool(merged["list_sheets"]),
        flexible=bool(merged["flexible"]),
        trim=bool(merged["trim"]),
        dates_whitelist=str(merged["dates_whitelist"]),
        delimiter=_normalize_delimiter(merged["delimiter"]),
        output=merged["output"],
        error_log_dir=merged["error_log_dir"],
    )
