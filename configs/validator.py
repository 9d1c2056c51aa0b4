"""Configuration validation using JSON Schema."""

from __future__ import annotations

import copy
from typing import Any, Dict

import jsonschema
from jsonschema import Draft7Validator, validators

from exceptions import ConfigValidationError
from log_config.logger import get_logger

logger = get_logger(__name__)

# JSON Schema for default.yaml configuration
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "polling": {
            "type": "object",
            "default": {},
            "properties": {
                "active_interval_ms": {"type": "integer", "minimum": 50, "maximum": 10000, "default": 500},
                "idle_interval_ms": {"type": "integer", "minimum": 100, "maximum": 60000, "default": 2000},
            },
        },
        "recorder": {
            "type": "object",
            "default": {},
            "properties": {
                "max_accuracy_m": {"type": "number", "minimum": 1, "maximum": 500, "default": 50.0},
                "max_speed_kmh": {"type": "number", "minimum": 10, "maximum": 400, "default": 150.0},
                "stale_fix_sec": {"type": "number", "minimum": 0.5, "maximum": 120, "default": 5.0},
            },
        },
        "storage": {
            "type": "object",
            "default": {},
            "properties": {
                "sessions_dir": {"type": "string", "minLength": 1, "default": "sessions"},
                "max_sessions": {"type": "integer", "minimum": 1, "maximum": 10000, "default": 100},
                "min_free_mb": {"type": "number", "minimum": 0, "default": 10.0},
            },
        },
        "logging": {
            "type": "object",
            "default": {},
            "properties": {
                "level": {
                    "type": "string",
                    "enum": ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"],
                    "default": "INFO",
                },
                "dir": {"type": "string", "default": "logs"},
                "file_logging": {"type": "boolean", "default": False},
            },
        },
    },
}


def extend_with_default(validator_class):
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema):
        if isinstance(instance, dict):
            for prop, subschema in properties.items():
                if "default" in subschema:
                    instance.setdefault(prop, copy.deepcopy(subschema["default"]))

        for error in validate_properties(validator, properties, instance, schema):
            yield error

    return validators.extend(validator_class, {"properties": set_defaults})


DefaultValidatingValidator = extend_with_default(Draft7Validator)


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration against schema, filling in defaults.

    Args:
        config: Configuration dictionary (modified in place with defaults)

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    try:
        validator = DefaultValidatingValidator(CONFIG_SCHEMA)
        errors = list(validator.iter_errors(config))

        if errors:
            error_messages = []
            for error in errors:
                path = " -> ".join(str(p) for p in error.path) if error.path else "root"
                error_messages.append(f"{path}: {error.message}")

            logger.error(f"Configuration validation failed with {len(errors)} errors")
            for msg in error_messages:
                logger.error(f"  - {msg}")

            raise ConfigValidationError(
                f"Configuration validation failed with {len(errors)} error(s). See logs for details.",
                validation_errors=error_messages,
            )

        logger.debug("Configuration validation passed")

    except jsonschema.exceptions.SchemaError as e:
        logger.error(f"Invalid schema: {e}")
        raise ConfigValidationError(f"Invalid schema definition: {e}")


__all__ = ["validate_config", "CONFIG_SCHEMA"]
