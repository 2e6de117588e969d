"""Command line entry point for rendering templates of a project."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from jinja2 import TemplateError

from .errors import ModlinkError
from .observability import StructuredLogger
from .template import TemplateCompiler


def _parse_ext(value: str) -> tuple[str, str]:
    kind, sep, ext = value.partition("=")
    if not sep or not kind or not ext:
        raise argparse.ArgumentTypeError(f"expected KIND=EXT, got {value!r}")
    return kind.lstrip("."), ext


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modlink",
        description="Resolve module directives in project templates",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    render_p = sub.add_parser("render", help="Render one template to stdout or a file")
    render_p.add_argument("template", help="Template path, relative to --cwd")
    render_p.add_argument("--cwd", default=".", help="Project root holding cortex.json")
    render_p.add_argument("--mod-root", required=True, help="Deployment root of built modules")
    render_p.add_argument("--host", action="append", default=[], dest="hosts", help="CDN host")
    render_p.add_argument("--href-root", help="Base URL for hybrid links")
    render_p.add_argument("--template-dir", help="Template source directory, relative to --cwd")
    render_p.add_argument("--built-root", help="Local directory holding hash manifests")
    render_p.add_argument("--facade", action="append", default=[], dest="facades")
    render_p.add_argument(
        "--ext",
        action="append",
        default=[],
        type=_parse_ext,
        help="Extension substitution, e.g. css=.min.css",
    )
    render_p.add_argument("--no-hash-host", action="store_true", help="Disable hashed hosts")
    render_p.add_argument(
        "--enable-hash",
        action="store_true",
        default=None,
        help="Rewrite file names with content hashes",
    )
    render_p.add_argument("--data", help="JSON file with template variables")
    render_p.add_argument("--output", "-o", help="Write the rendered template here")
    render_p.add_argument("--log-file", help="Write structured logs as JSON lines")
    return parser


def cmd_render(args: argparse.Namespace) -> int:
    logger = StructuredLogger()
    overrides: dict[str, Any] = {
        "hosts": tuple(args.hosts),
        "facades": tuple(args.facades),
        "extension_map": dict(args.ext),
        "hash_host": not args.no_hash_host,
        "enable_hash": args.enable_hash,
    }
    if args.href_root:
        overrides["href_root"] = args.href_root
    if args.template_dir:
        overrides["template_dir"] = args.template_dir
    if args.built_root:
        overrides["built_root"] = args.built_root

    try:
        compiler = TemplateCompiler.for_project(
            args.cwd,
            path=args.template,
            mod_root=args.mod_root,
            logger=logger,
            **overrides,
        )
        context = _read_context(args.data)
        rendered = compiler.compile_file().render(context)
    except (ModlinkError, TemplateError, OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        if args.log_file:
            logger.to_json_lines(args.log_file)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(rendered, encoding="utf-8")
    else:
        sys.stdout.write(rendered)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "render":
        return cmd_render(args)
    parser.error(f"unknown command {args.command!r}")
    return 2


def _read_context(path: str | None) -> dict[str, Any]:
    if not path:
        return {}
    payload = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"--data must contain a JSON object: {path}")
    return payload


if __name__ == "__main__":
    raise SystemExit(main())
