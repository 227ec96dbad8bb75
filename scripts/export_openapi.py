#!/usr/bin/env python3

"""Write the upload router's OpenAPI document to a file or to stdout.

    python scripts/export_openapi.py docs/            # docs/openapi.json
    python scripts/export_openapi.py - --indent 0     # compact, to stdout
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from upload_router.main import create_app

DEFAULT_FILENAME = "openapi.json"


def build_schema() -> dict[str, Any]:
    return create_app().openapi()


def render_schema(schema: dict[str, Any], indent: int = 2) -> str:
    return json.dumps(schema, ensure_ascii=False, indent=indent or None) + "\n"


def export_openapi(
    target_dir: Path, *, filename: str = DEFAULT_FILENAME, indent: int = 2
) -> Path:
    """Render the schema into target_dir/filename and return the file path."""
    target_dir.mkdir(parents=True, exist_ok=True)
    output_path = target_dir / filename
    output_path.write_text(render_schema(build_schema(), indent), encoding="utf-8")
    return output_path


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "target",
        help="Output directory (created if missing), or '-' for stdout.",
    )
    parser.add_argument("--filename", default=DEFAULT_FILENAME)
    parser.add_argument(
        "--indent", type=int, default=2, help="JSON indent; 0 writes compact JSON."
    )
    args = parser.parse_args(argv)

    if args.target == "-":
        sys.stdout.write(render_schema(build_schema(), args.indent))
        return

    output_path = export_openapi(
        Path(args.target).resolve(), filename=args.filename, indent=args.indent
    )
    print(f"OpenAPI schema exported to {output_path}", file=sys.stderr)


if __name__ == "__main__":
    main()
