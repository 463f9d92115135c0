"""Command-line interface for xml-ai."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Sequence

from colorama import Fore, Style

from .compiler import compile_document
from .container import ServiceContainer, create_container
from .domain import DocumentInvocation, Role
from .exceptions import ConfigurationError, ScriptCompileError, SnapshotSaveError, XmlAiException
from .infrastructure.repositories import SUPPORTED_SUFFIXES
from .logging_config import configure_logging
from .runtime import invoke_document
from .services import ICompletionService, IConfigurationManager, ISnapshotRepository
from .snapshot import ConversationSnapshot

LOGGER = logging.getLogger(__name__)

ROLE_COLORS = {
    Role.SYSTEM: Fore.YELLOW,
    Role.USER: Fore.GREEN,
    Role.ASSISTANT: Fore.CYAN,
}


def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""
    parser = argparse.ArgumentParser(prog="xml-ai", description="Run conversation scripts written in xml-ai markup.")
    parser.add_argument("--verbose", action="store_true", help="Log progress information.")
    parser.add_argument("--debug", action="store_true", help="Trace compilation, completion calls and HTTP traffic.")
    parser.add_argument("-c", "--config", type=Path, default=None, help="YAML or JSON configuration file.")
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write log records to this file (defaults to the `logging.file` setting).",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)

    run = subcommands.add_parser("run", help="Invoke one prompt and save the resulting conversation.")
    run.add_argument("file", type=Path, help="Path to the prompt file.")
    run.add_argument("-n", "--name", required=True, help="The name of the prompt.")
    run.add_argument(
        "-k",
        "--key-file",
        type=Path,
        default=None,
        help="API key file path (defaults to the OPENAI_API_KEY environment variable).",
    )
    run.add_argument(
        "-o",
        "--output",
        type=Path,
        required=True,
        help="Path to the output snapshot (.json, .yaml or .yml).",
    )

    check = subcommands.add_parser("check", help="Compile a prompt file and list its prompts.")
    check.add_argument("file", type=Path, help="Path to the prompt file.")
    return parser


def _color(text: str, code: str, use_color: bool) -> str:
    if not use_color:
        return text
    return f"{code}{text}{Style.RESET_ALL}"


def render_snapshot(snapshot: ConversationSnapshot, use_color: bool = False) -> str:
    """Render a snapshot as one block per message; evaluated turns are starred."""
    blocks = []
    for message in snapshot.messages:
        marker = "*" if message.evaluated else ""
        header = _color(f"[{message.role.value}{marker}]", ROLE_COLORS[message.role], use_color)
        blocks.append(f"{header} {message.text}")
    return "\n".join(blocks)


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise XmlAiException("cannot read prompt file", {"path": str(path), "reason": exc.strerror}) from exc


def _read_api_key(path: Path | None) -> str | None:
    if path is None:
        return None
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        raise XmlAiException("cannot read API key file", {"path": str(path), "reason": exc.strerror}) from exc


def check_command(args: argparse.Namespace) -> int:
    document = compile_document(_read_source(args.file))
    for prompt in document:
        print(f"{prompt.name}: {len(prompt.children)} directives, {len(prompt.breakpoints())} breakpoints")
    return 0


async def run_command(args: argparse.Namespace, container: ServiceContainer, use_color: bool) -> int:
    output: Path = args.output
    if output.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise SnapshotSaveError(f"unsupported snapshot format {output.suffix or '(none)'!r}", file_path=str(output))

    document = compile_document(_read_source(args.file))
    try:
        service = container.resolve(ICompletionService)
        conversation = await invoke_document(document, DocumentInvocation(target_prompt=args.name), service)
        snapshot = conversation.to_snapshot()
        repository = container.resolve(ISnapshotRepository)
        path = repository.save(snapshot, output)
    finally:
        await container.aclose()

    LOGGER.info("Saved %d messages to %s", len(snapshot), path)
    print(_color("DONE:", Style.BRIGHT, use_color))
    print(render_snapshot(snapshot, use_color))
    return 0


def _report(exc: XmlAiException) -> None:
    if isinstance(exc, ScriptCompileError):
        print(f"error: {len(exc.errors)} problem(s) in script", file=sys.stderr)
        for error in exc.errors:
            print(f"  - {error}", file=sys.stderr)
        return
    print(f"error: {exc}", file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    use_color = sys.stderr.isatty() and os.getenv("NO_COLOR") is None

    try:
        api_key = _read_api_key(getattr(args, "key_file", None))
        container = create_container({"config_file": args.config, "api_key": api_key})
        config = container.resolve(IConfigurationManager)
        if args.debug:
            level = "DEBUG"
        elif args.verbose:
            level = "INFO"
        else:
            level = str(config.get("logging.level", "WARNING"))
        log_file = args.log_file or config.get("logging.file")
        try:
            configure_logging(level=level, log_file=Path(log_file) if log_file else None, use_color=use_color)
        except OSError as exc:
            raise ConfigurationError("cannot open log file", {"path": str(log_file), "reason": exc.strerror}) from exc

        if args.command == "check":
            return check_command(args)
        return asyncio.run(run_command(args, container, use_color))
    except KeyboardInterrupt:
        print("\n[Interrupted] Exiting.")
        return 130
    except XmlAiException as exc:
        LOGGER.debug("Command failed", exc_info=True)
        _report(exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
