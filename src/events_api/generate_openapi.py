"""
Write the OpenAPI schema of the Event Tracker app to interfaces/openapi.json.

API clients and documentation tools can consume the schema without running the
server.

Usage:
    python -m src.events_api.generate_openapi [output-path]
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, List, Optional

from .main import app, openapi_tags


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Make sure every tag declared in openapi_tags is present in the schema,
    without overriding existing tag definitions.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


def default_output_path() -> str:
    script_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))  # points to .../src
    container_root = os.path.dirname(script_dir)
    return os.path.join(container_root, "interfaces", "openapi.json")


# PUBLIC_INTERFACE
def generate_openapi(out_path: Optional[str] = None) -> str:
    """Generate the OpenAPI schema file and return the written file path."""
    schema = app.openapi()
    _ensure_tags(schema)

    out_path = out_path or default_output_path()
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    return out_path


def main() -> None:
    path = generate_openapi(sys.argv[1] if len(sys.argv) > 1 else None)
    print(f"Wrote OpenAPI schema to: {path}")


if __name__ == "__main__":
    main()
