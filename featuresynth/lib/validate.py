"""
Schema validation for input documents.

Checks only the shape the engine relies on: epics, stories and tasks are
objects, and their naming fields are strings. Everything else is free text.
"""

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml


class DocumentError(Exception):
    """Input document failed to load or match its schema."""

    def __init__(self, schema_name: str, message: str, path: str = None):
        self.schema_name = schema_name
        self.path = path
        super().__init__(f"[{schema_name}] {message}" + (f" at {path}" if path else ""))


# Cache loaded schemas
_schema_cache: dict[str, dict] = {}


def _get_schemas_dir() -> Path:
    """Get path to schemas directory."""
    return Path(__file__).parent.parent / "schemas"


def _load_schema(schema_name: str) -> dict:
    """Load schema by name, with caching."""
    if schema_name not in _schema_cache:
        schema_path = _get_schemas_dir() / f"{schema_name}.schema.json"
        if not schema_path.exists():
            raise DocumentError(schema_name, f"Schema file not found: {schema_path}")
        _schema_cache[schema_name] = json.loads(schema_path.read_text())
    return _schema_cache[schema_name]


def validate(data: Any, schema_name: str = "document") -> None:
    """
    Validate data against named schema.

    Args:
        data: Parsed document
        schema_name: Schema name (e.g., "document")

    Raises:
        DocumentError: If validation fails
    """
    schema = _load_schema(schema_name)

    try:
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        path = ".".join(str(p) for p in e.absolute_path) if e.absolute_path else "(root)"
        raise DocumentError(schema_name, e.message, path) from None


def read_document(filepath: Path) -> Any:
    """
    Load a JSON or YAML file without validating it.

    YAML is chosen by the .yaml/.yml suffix, JSON otherwise.

    Raises:
        DocumentError: If file is missing or not parseable
    """
    if not filepath.exists():
        raise DocumentError("document", f"File not found: {filepath}")

    text = filepath.read_text()
    if filepath.suffix.lower() in (".yaml", ".yml"):
        try:
            return yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise DocumentError("document", f"Invalid YAML in {filepath}: {e}") from None

    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise DocumentError("document", f"Invalid JSON in {filepath}: {e}") from None
