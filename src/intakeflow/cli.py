"""
Command-line interface for intakeflow.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, List

from .config import load_config
from .errors import FlowValidationError, GraphError
from .flows import FlowSession, build_persistence
from .observability import configure_logging
from .parser import flow_to_dict, parse, render_document
from .studio import LayoutConfig, build_canvas_manifest, layout_dict
from .validation import validate_report
from .version import __version__


def build_cli_parser() -> argparse.ArgumentParser:
    cli = argparse.ArgumentParser(prog="intakeflow", description="Intake flow toolkit")
    cli.add_argument(
        "--version",
        action="version",
        version=f"intakeflow {__version__} (Python {sys.version.split()[0]})",
    )
    sub = cli.add_subparsers(dest="command", required=True)

    parse_cmd = sub.add_parser("parse", help="Parse a flow document and print the flow as JSON")
    parse_cmd.add_argument("file", type=Path)
    parse_cmd.add_argument("--flow-id", default=None)

    validate_cmd = sub.add_parser("validate", help="Validate a flow document")
    validate_cmd.add_argument("file", type=Path)
    validate_cmd.add_argument("--json", action="store_true", help="Print the full report as JSON")

    layout_cmd = sub.add_parser("layout", help="Compute canvas positions for every node")
    layout_cmd.add_argument("file", type=Path)

    canvas_cmd = sub.add_parser("canvas", help="Build the editor canvas manifest")
    canvas_cmd.add_argument("file", type=Path)

    export_cmd = sub.add_parser("export", help="Re-render a flow as a canonical markdown document")
    export_cmd.add_argument("file", type=Path)
    export_cmd.add_argument("--output", "-o", type=Path, default=None)

    walk_cmd = sub.add_parser("walk", help="Drive a flow with scripted answers")
    walk_cmd.add_argument("file", type=Path)
    walk_cmd.add_argument(
        "--answer",
        "-a",
        action="append",
        default=[],
        help="Answer for the next question; JSON objects are passed to form nodes",
    )
    walk_cmd.add_argument("--finalize", action="store_true", help="Store the submission when a terminal node is reached")
    walk_cmd.add_argument("--save-draft", action="store_true", help="Store a draft when answers run out")
    walk_cmd.add_argument("--draft-dir", default=None, help="Directory for drafts and submissions")

    serve_cmd = sub.add_parser("serve", help="Start the HTTP server")
    serve_cmd.add_argument("--host", default="127.0.0.1")
    serve_cmd.add_argument("--port", type=int, default=8000)
    serve_cmd.add_argument("--dry-run", action="store_true", help="Build the app without starting the server")

    return cli


def _load_flow(path: Path, flow_id: str | None = None):
    try:
        document = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SystemExit(f"Cannot read {path}: {exc}") from exc
    result = parse(document, flow_id=flow_id)
    if not result.success:
        raise SystemExit(f"{result.error.kind.value} error: {result.error}")
    return result.flow


def _coerce_answer(raw: str) -> Any:
    stripped = raw.strip()
    if stripped.startswith("{"):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return raw
    return raw


def _walk(args, config) -> dict:
    flow = _load_flow(args.file)
    persistence = build_persistence(args.draft_dir or config.draft_dir)
    try:
        session = FlowSession(flow, persistence=persistence, redact_answers=config.redact_answers)
    except FlowValidationError as exc:
        raise SystemExit(f"{exc.message}: " + "; ".join(issue.message for issue in exc.issues)) from exc

    answers: List[Any] = [_coerce_answer(a) for a in args.answer]
    output: dict = {"flow_id": session.flow_id}
    while True:
        node = session.current_node
        if node is None or node.is_terminal:
            break
        if node.is_start or node.type == "info":
            result = session.advance()
        elif answers:
            result = session.advance(answers.pop(0))
        else:
            break
        if not result.success:
            output["error"] = result.error.to_dict()
            break

    if args.finalize and session.current_node is not None and session.current_node.is_terminal:
        try:
            output["submission_id"] = asyncio.run(session.finalize())
        except GraphError as exc:
            output["error"] = exc.to_dict()
    elif args.save_draft:
        output["draft_handle"] = asyncio.run(session.save_draft())
    output.update(session.to_dict())
    output["responses"] = [r.to_dict() for r in session.state.responses]
    return output


def main(argv: list[str] | None = None) -> None:
    cli = build_cli_parser()
    args = cli.parse_args(argv)
    config = load_config()
    configure_logging(config.log_level)

    if args.command == "parse":
        flow = _load_flow(args.file, args.flow_id)
        print(json.dumps(flow_to_dict(flow), indent=2))
        return

    if args.command == "validate":
        report = validate_report(_load_flow(args.file))
        if args.json:
            print(json.dumps(report.to_dict(), indent=2))
        else:
            for issue in report.issues:
                where = f" [{issue.node_id}]" if issue.node_id else ""
                print(f"{issue.severity.upper()} {issue.code}{where}: {issue.message}")
            summary = report.summary()
            print(f"{summary['errors']} error(s), {summary['warnings']} warning(s)")
        if report.has_errors:
            raise SystemExit(1)
        return

    if args.command == "layout":
        flow = _load_flow(args.file)
        print(json.dumps(layout_dict(flow, LayoutConfig.from_config(config)), indent=2))
        return

    if args.command == "canvas":
        flow = _load_flow(args.file)
        print(json.dumps(build_canvas_manifest(flow, config=LayoutConfig.from_config(config)), indent=2))
        return

    if args.command == "export":
        rendered = render_document(_load_flow(args.file))
        if args.output:
            args.output.write_text(rendered, encoding="utf-8")
            print(f"Wrote {args.output}")
        else:
            print(rendered)
        return

    if args.command == "walk":
        output = _walk(args, config)
        print(json.dumps(output, indent=2, default=str))
        if "error" in output:
            raise SystemExit(1)
        return

    if args.command == "serve":
        try:
            from .server.app.factory import create_app
        except Exception as exc:  # pragma: no cover - load-time guard
            raise SystemExit(f"Failed to import server: {exc}") from exc
        app = create_app(config=config)
        if args.dry_run:
            print(json.dumps({"status": "ready", "host": args.host, "port": args.port}, indent=2))
            return
        import uvicorn

        uvicorn.run(app, host=args.host, port=args.port)
        return


if __name__ == "__main__":  # pragma: no cover
    main()
