# generate/loader.py
import json
import logging
from pathlib import Path
from typing import List

from jsonschema import ValidationError
from jsonschema.validators import Draft7Validator
from pydantic import ValidationError as ModelValidationError

from typegen.config_models import TypeGenConfig
from typegen.db import get_settings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "tsgen.config.json"
CONFIG_SCHEMA_PATH = Path(__file__).resolve().parent / "typegen_config.schema.json"


class InvalidConfigError(Exception):
    pass


class ConfigNotFoundError(InvalidConfigError):
    pass


def _resolve_config_path(config_path: str) -> Path:
    """
    Absolute paths are used as-is; relative ones are tried against the working
    directory, then against the project root.
    """
    path = Path(config_path).expanduser()
    if path.is_absolute():
        return path

    candidates = [Path.cwd() / path, Path(__file__).resolve().parents[1] / path]
    for p in candidates:
        if p.exists():
            return p
    return candidates[0]


def strip_json_comments(raw: str) -> str:
    """Drop `//` comment lines and trailing `//` comments outside of strings."""
    cleaned: List[str] = []
    for line in raw.split("\n"):
        if line.strip().startswith("//"):
            continue
        idx = line.find("//")
        # odd number of quotes before `//` means it's inside a string
        while idx >= 0 and line[:idx].count('"') % 2 == 1:
            idx = line.find("//", idx + 2)
        if idx >= 0:
            cleaned.append(line[:idx].rstrip())
            continue
        cleaned.append(line)
    return "\n".join(cleaned)


def _load_config_schema() -> dict:
    try:
        schema = json.loads(CONFIG_SCHEMA_PATH.read_text(encoding="utf-8"))
    except Exception as e:
        raise InvalidConfigError(f"Failed to read config schema at {CONFIG_SCHEMA_PATH}: {e}") from e
    Draft7Validator.check_schema(schema)
    return schema


def load_config(path: str = DEFAULT_CONFIG_FILE) -> TypeGenConfig:
    config_path = _resolve_config_path(path)
    logger.info("Loading configuration from: %s", config_path)
    if not config_path.exists():
        raise ConfigNotFoundError(f"Configuration file not found: {config_path}")

    try:
        data = json.loads(strip_json_comments(config_path.read_text(encoding="utf-8")))
    except json.JSONDecodeError as e:
        raise InvalidConfigError(f"Invalid JSON in configuration file: {e}") from e

    try:
        Draft7Validator(_load_config_schema()).validate(data)
    except ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise InvalidConfigError(f"Config validation failed at {where}: {e.message}") from e

    try:
        config = TypeGenConfig.model_validate(data)
    except ModelValidationError as e:
        raise InvalidConfigError(f"Config validation failed: {e}") from e

    if not config.connectionString and get_settings().DATABASE_URL:
        config = config.model_copy(update={"connectionString": get_settings().DATABASE_URL})

    result = config.validate_semantics()
    for warning in result.warnings:
        logger.warning("Configuration warning: %s", warning)
    if not result.is_valid:
        raise InvalidConfigError(f"Configuration validation failed:\n{result.format_errors()}")

    logger.info("Configuration loaded and validated successfully")
    logger.info("- Database enums to generate: %d", len(config.databaseEnums))
    logger.info("- Modules to scan: %d", len(config.modulesToScan))
    logger.info("- TypeScript interfaces output: %s", config.typeScriptInterfacesOutputPath)
    logger.info("- TypeScript enums output: %s", config.typeScriptEnumsOutputPath)
    return config
