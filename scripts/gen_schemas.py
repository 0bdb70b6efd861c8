# scripts/gen_schemas.py
"""
Generate JSON Schemas for Data Alchemist models.

This script exports JSON Schema files for:
    - Client, Worker, Task (coerced entities)
    - Rule (tagged union of the six rule types)
    - Config

Output directory: schemas/ (or the first CLI argument)
"""

import json
import sys
from pathlib import Path
from typing import Any

from alchemist.schemas.models import Client, Config, Task, Worker
from alchemist.schemas.rules import RULE_ADAPTER


def export_schema(schema: dict[str, Any], name: str, out_dir: Path) -> Path:
    """
    @brief
    Writes one JSON Schema document as "<name>.schema.json".

    @params
        schema : dict
            Schema produced by pydantic (model_json_schema / TypeAdapter.json_schema).
        name : str
            Base name of the output file.
        out_dir : Path
            Target directory, created when missing.

    @returns
        Path to the written file.
    """
    # (1) Ensure output directory exists
    out_dir.mkdir(parents=True, exist_ok=True)

    # (2) Serialize with indentation and final newline
    schema_path = (out_dir / f"{name}.schema.json").resolve()
    with schema_path.open("w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
        f.write("\n")

    # (3) Report relative to cwd when possible
    try:
        rel = schema_path.relative_to(Path.cwd())
    except ValueError:
        rel = schema_path
    print(f"✅  Generated {rel}")
    return schema_path


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    out_dir = Path(args[0] if args else "schemas").resolve()

    export_schema(Client.model_json_schema(by_alias=True), "client", out_dir)
    export_schema(Worker.model_json_schema(by_alias=True), "worker", out_dir)
    export_schema(Task.model_json_schema(by_alias=True), "task", out_dir)
    export_schema(RULE_ADAPTER.json_schema(by_alias=True), "rule", out_dir)
    export_schema(Config.model_json_schema(), "config", out_dir)


if __name__ == "__main__":
    main()
