"""Catalog document loading and field validation."""

import json
from pathlib import Path

import yaml


class ConfigError(Exception):
    """Raised when a catalog file cannot be loaded or fails validation.

    Syntax errors carry the line number, the offending line and a caret
    under the failing column.
    """
    pass


YAML_SUFFIXES = {".yaml", ".yml"}


def _format_syntax_error(original_text: str, error: json.JSONDecodeError) -> str:
    """Format a JSON syntax error with line, caret, and context."""
    lines = original_text.split("\n")
    msg_parts = [
        f"Syntax error at line {error.lineno}, col {error.colno}: {error.msg}"
    ]
    if 1 <= error.lineno <= len(lines):
        msg_parts.append(lines[error.lineno - 1])
        msg_parts.append(" " * (error.colno - 1) + "^")
    return "\n".join(msg_parts)


def load_document(path: Path) -> dict:
    """Load a JSON or YAML document that must contain a mapping.

    The format is chosen from the file suffix: .yaml/.yml are parsed with
    PyYAML, anything else as JSON.

    Raises:
        ConfigError: If the file cannot be read, has syntax errors,
            or its top level is not an object.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"File not found: {path}")
    except PermissionError:
        raise ConfigError(f"Permission denied reading file: {path}")
    except UnicodeDecodeError:
        raise ConfigError(f"File is not valid UTF-8: {path}")
    except OSError as e:
        raise ConfigError(f"Error reading file {path}: {e}")

    if path.suffix.lower() in YAML_SUFFIXES:
        try:
            result = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    else:
        try:
            result = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"{path}: {_format_syntax_error(text, e)}") from e

    if result is None:
        return {}
    if not isinstance(result, dict):
        raise ConfigError(
            f"{path} must contain an object, got {type(result).__name__}"
        )
    return result


def require_str_field(data: dict, field: str, entity_name: str) -> str:
    """Validate a required non-empty string field and return it.

    Raises:
        ConfigError: If field missing, not str, or empty
    """
    if field not in data:
        raise ConfigError(f"{entity_name} missing required field: {field}")
    if not isinstance(data[field], str) or not data[field].strip():
        raise ConfigError(f"{entity_name} field '{field}' must be a non-empty string")
    return data[field]


def optional_str_field(data: dict, field: str, entity_name: str) -> str:
    value = data.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"{entity_name} field '{field}' must be a string or null")
    return value


def string_list_field(data: dict, field: str, entity_name: str) -> list[str]:
    """Validate an optional list of non-empty strings.

    Raises:
        ConfigError: If field not a list or contains invalid strings
    """
    value = data.get(field)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{entity_name} field '{field}' must be an array")
    for i, item in enumerate(value):
        if not isinstance(item, str) or not item.strip():
            raise ConfigError(f"{entity_name} {field}[{i}] must be a non-empty string")
    return list(value)


def string_list_map_field(
    data: dict, field: str, entity_name: str
) -> dict[str, list[str]]:
    value = data.get(field)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{entity_name} field '{field}' must be an object")
    return {
        key: string_list_field(value, key, f"{entity_name} {field}")
        for key in value
    }


__all__ = [
    "ConfigError",
    "load_document",
    "require_str_field",
    "optional_str_field",
    "string_list_field",
    "string_list_map_field",
]
