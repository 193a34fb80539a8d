#!/usr/bin/env python3
"""Validate stored collection files against the schema."""
import json
import sys
from pathlib import Path

from jsonschema import validate, ValidationError

from fleet.loader import COLLECTIONS, load_schema


def validate_collection_file(filepath: Path, schema: dict) -> list[str]:
    """Validate a single collection JSON file. Returns list of errors."""
    errors = []
    try:
        with open(filepath, encoding="utf-8") as f:
            data = json.load(f)
        validate(instance=data, schema=schema)
        ids = [record["id"] for record in data]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            errors.append(f"Duplicate ids: {', '.join(duplicates)}")
    except json.JSONDecodeError as e:
        errors.append(f"JSON parse error: {e}")
    except ValidationError as e:
        errors.append(f"Schema validation error: {e.message}")
        if e.path:
            errors.append(f"  at path: {'.'.join(str(p) for p in e.path)}")
    except OSError as e:
        errors.append(f"Error: {e}")
    return errors


def main(argv=None):
    """Validate every collection file in the data directory."""
    argv = sys.argv[1:] if argv is None else argv
    data_dir = Path(argv[0]) if argv else Path(__file__).parent / "data"
    schemas = load_schema()

    if not data_dir.exists():
        print(f"Error: data directory not found: {data_dir}")
        return 1

    found = [name for name in sorted(COLLECTIONS) if (data_dir / f"{name}.json").exists()]
    if not found:
        print(f"Warning: No collection files found in {data_dir}")
        return 0

    all_valid = True
    for name in found:
        filepath = data_dir / f"{name}.json"
        errors = validate_collection_file(filepath, schemas[name])
        if errors:
            print(f"FAIL: {filepath.name}")
            for error in errors:
                print(f"  {error}")
            all_valid = False
        else:
            print(f"OK: {filepath.name}")

    return 0 if all_valid else 1


if __name__ == "__main__":
    sys.exit(main())
