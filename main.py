#!/usr/bin/env python3
"""Surgical codegen - command-line front-end.

Usage:
    python main.py generate --prompt "make the header blue" --dir ./app          # preview edits
    python main.py generate --prompt "..." --dir ./app --write                   # apply edits
    python main.py plan --prompt "add a settings page" --dir ./app
    python main.py build --prompt "stock screener component" --out Screener.tsx  # retry loop
    python main.py check src/App.tsx src/Chart.tsx --fix
    python main.py chunk src/App.tsx
"""

import argparse
import asyncio
import logging
import os
import sys

from agents.error_detector import ErrorDetector
from config.stacks import LANGUAGES
from core.chunker import FileChunker
from core.conversation import ConversationStateStore
from core.orchestrator import MultiPhaseOrchestrator
from core.streaming import ProgressStreamer

logger = logging.getLogger(__name__)

SKIP_DIRS = {".git", "node_modules", ".next", "dist", "build", "__pycache__", ".venv"}


def load_snapshot(root):
    """Read every source file under root into {relative_path: content}."""
    files = {}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in sorted(filenames):
            if os.path.splitext(filename)[1] not in LANGUAGES:
                continue
            path = os.path.join(dirpath, filename)
            rel = os.path.relpath(path, root).replace(os.sep, "/")
            try:
                with open(path, encoding="utf-8") as f:
                    files[rel] = f.read()
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping %s: %s", rel, e)
    return files


def write_files(root, contents):
    """Write {relative_path: content} under root. Returns written paths."""
    written = []
    root = os.path.abspath(root)
    for rel, content in contents.items():
        path = os.path.abspath(os.path.join(root, rel))
        if os.path.commonpath([root, path]) != root:
            logger.warning("Refusing to write outside %s: %s", root, rel)
            continue
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        written.append(path)
    return written


def _print_event(event):
    """Console sink: one line per status/warning/edit event."""
    content = event.content
    if event.type == "status":
        print(f"  .. {content['message']}")
    elif event.type == "warning":
        print(f"  [WARN] {content['message']}")
    elif event.type == "surgical-edit" and content.get("phase") == "complete":
        print(f"  edited {content['fileName']} ({content['linesChanged']} line(s))")
    elif event.type == "error-recovery":
        print(f"  retrying (attempt {content['attempt']}): {content['error']}")


def _format_errors(errors):
    lines = []
    for error in errors:
        loc = f":{error.location['line']}" if error.location and error.location.get("line") else ""
        fix = " (auto-fixable)" if error.auto_fixable else ""
        lines.append(f"  [{error.severity.upper()}] {error.type}{loc} — {error.message}{fix}")
    return "\n".join(lines)


def _print_phases(result):
    for phase in result.phases:
        took = f" {phase.duration:.2f}s" if phase.duration is not None else ""
        err = f" — {phase.error}" if phase.error else ""
        print(f"  {phase.name:20s} {phase.status}{took}{err}")


def cmd_generate(args):
    """Run the five-phase pipeline over a directory snapshot."""
    files = load_snapshot(args.dir)
    streamer = ProgressStreamer(_print_event) if args.verbose else None
    result = asyncio.run(MultiPhaseOrchestrator().run(
        args.prompt, files, session=ConversationStateStore(), streamer=streamer,
    ))

    print("\nPhases:")
    _print_phases(result)
    if not result.success:
        print(f"\nFailed: {result.error}")
        sys.exit(1)

    print(f"\nIntent:   {result.intent.edit_type} (confidence {result.intent.confidence:.2f})")
    print(f"Approach: {result.plan.approach}")
    print(f"\n{len(result.edits)} edit(s):")
    for edit in result.edits:
        kind = "modified" if edit.original_content else "created"
        print(f"  {edit.file_path} [{kind}, {len(edit.lines_changed)} line(s)] {edit.change_description}")
    for warning in result.warnings:
        print(f"  [WARN] {warning}")

    if args.write:
        written = write_files(args.dir, {e.file_path: e.modified_content for e in result.edits})
        print(f"\nWrote {len(written)} file(s).")
    else:
        print("\nPreview only, pass --write to apply.")


def cmd_plan(args):
    files = load_snapshot(args.dir)
    result = asyncio.run(MultiPhaseOrchestrator().plan(args.prompt, files))
    _print_phases(result)
    if not result.success:
        print(f"\nFailed: {result.error}")
        sys.exit(1)

    plan = result.plan
    print(f"\nApproach:   {plan.approach} ({plan.estimated_complexity} complexity)")
    print(f"Targets:    {', '.join(result.intent.target_files) or '(new file)'}")
    print("\nPhases:")
    for step in plan.phases:
        print(f"  - {step}")
    print("\nRisks:")
    for risk in plan.risk_assessment:
        print(f"  - {risk}")
    print("\nSuccess criteria:")
    for item in plan.success_criteria:
        print(f"  - {item}")


def cmd_build(args):
    """Generate one file through the build/detect/fix retry loop."""
    files = load_snapshot(args.dir) if args.dir else {}
    streamer = ProgressStreamer(_print_event) if args.verbose else None
    task, result = asyncio.run(MultiPhaseOrchestrator().run_agentic(
        args.prompt, files, max_retries=args.max_retries, streamer=streamer,
    ))

    print(f"Category:   {task.category} ({task.complexity})")
    print(f"Attempts:   {result.attempts}")
    if result.applied_fixes:
        print(f"Auto-fixes: {', '.join(result.applied_fixes)}")
    if not result.success:
        print(f"\nFailed: {result.error}")
        if result.last_error:
            for issue in result.last_error.remaining_issues:
                print(f"  - {issue}")
        sys.exit(1)

    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(result.code)
        print(f"\nWrote {args.out}")
    else:
        print()
        print(result.code)


def cmd_check(args):
    """Run the error detector over files; --fix applies auto-fixes."""
    detector = ErrorDetector()
    found = 0
    for path in args.files:
        with open(path, encoding="utf-8") as f:
            code = f.read()
        errors = detector.detect(code)
        if not errors:
            print(f"{path}: ok")
            continue
        found += len(errors)
        print(f"{path}: {len(errors)} issue(s)")
        print(_format_errors(errors))
        if args.fix:
            fix = detector.auto_fix(code, errors)
            if fix.fixed_code is not None:
                with open(path, "w", encoding="utf-8") as f:
                    f.write(fix.fixed_code)
                print(f"  applied: {', '.join(fix.applied_fixes)}")
            if fix.remaining_errors:
                print(f"  {len(fix.remaining_errors)} issue(s) need manual attention")
    if found:
        sys.exit(1)


def cmd_chunk(args):
    with open(args.file, encoding="utf-8") as f:
        content = f.read()
    chunks = FileChunker().chunk(content)
    if not chunks:
        print("No declarations found.")
        return
    for chunk in chunks:
        print(f"  {chunk.start_line + 1:>5}-{chunk.end_line + 1:<5} {chunk.type:10s} {chunk.name}")


def main():
    parser = argparse.ArgumentParser(
        prog="surgical-codegen",
        description="Surgical AI code editing for React/TypeScript projects",
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level (default: WARNING)")
    subparsers = parser.add_subparsers(dest="command")

    gen_parser = subparsers.add_parser("generate", help="Run the full edit pipeline")
    gen_parser.add_argument("--prompt", required=True, help="Natural language request")
    gen_parser.add_argument("--dir", default=".", help="Project directory (default: .)")
    gen_parser.add_argument("--write", action="store_true", help="Write edits back to --dir")
    gen_parser.add_argument("--verbose", action="store_true", help="Print progress events")

    plan_parser = subparsers.add_parser("plan", help="Analyze intent and print a plan only")
    plan_parser.add_argument("--prompt", required=True, help="Natural language request")
    plan_parser.add_argument("--dir", default=".", help="Project directory (default: .)")

    build_parser = subparsers.add_parser("build", help="Generate one file with detect/fix retries")
    build_parser.add_argument("--prompt", required=True, help="Natural language request")
    build_parser.add_argument("--dir", help="Project directory used as reference context")
    build_parser.add_argument("--max-retries", type=int, default=None,
                              help="Retries after the first attempt (default: 2, hard cap 5)")
    build_parser.add_argument("--out", help="Write the generated file here instead of stdout")
    build_parser.add_argument("--verbose", action="store_true", help="Print progress events")

    check_parser = subparsers.add_parser("check", help="Detect common generated-code defects")
    check_parser.add_argument("files", nargs="+", help="Files to check")
    check_parser.add_argument("--fix", action="store_true", help="Apply auto-fixes in place")

    chunk_parser = subparsers.add_parser("chunk", help="Show the declaration chunks of a file")
    chunk_parser.add_argument("file", help="File to chunk")

    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    commands = {
        "generate": cmd_generate,
        "plan": cmd_plan,
        "build": cmd_build,
        "check": cmd_check,
        "chunk": cmd_chunk,
    }
    if args.command not in commands:
        parser.print_help()
        sys.exit(1)
    commands[args.command](args)


if __name__ == "__main__":
    main()
