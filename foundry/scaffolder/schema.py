"""Entity -> JSON-Schema projection for the generated backend."""

from __future__ import annotations

from typing import Any

from foundry.planner.models import AppSpec

# enum, date, text and unknown types all collapse to string.
_JSON_TYPE_MAP: dict[str, str] = {
    "number": "number",
    "boolean": "boolean",
}


def json_type(field_type: str) -> str:
    """Map a spec field type to a JSON-Schema type (``string`` if unknown)."""
    return _JSON_TYPE_MAP.get(field_type, "string")


def build_schema(spec: AppSpec) -> list[dict[str, Any]]:
    """Return ``[{name, schema}]`` for every entity, in spec order."""
    schemas: list[dict[str, Any]] = []
    for entity in spec.entities:
        schemas.append({
            "name": entity.name,
            "schema": {
                "type": "object",
                "properties": {
                    field.name: {"type": json_type(field.type)} for field in entity.fields
                },
                "required": [field.name for field in entity.fields if field.required],
            },
        })
    return schemas
