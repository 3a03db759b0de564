from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from .codec import from_json, to_json
from .config import Settings
from .core.errors import PolicyError
from .core.schema import PlacementPolicy
from .query import parse, to_text, validate

logger = logging.getLogger("placement.cli")


def _add_common(p: argparse.ArgumentParser) -> None:
    p.add_argument("file", nargs="?", default="-", help="Input file ('-' or omitted: stdin).")
    p.add_argument("--config", type=str, default=None, help="Explicit TOML settings file.")
    p.add_argument("--log-level", type=str, default=None, help="Override the logging level.")


def _setup(args: argparse.Namespace) -> Settings:
    """Load settings (env > TOML > defaults), apply CLI overrides, configure logging.

    Args:
        args: Parsed subcommand arguments.

    Returns:
        Effective settings.
    """
    settings = Settings.load(args.config)
    overrides: dict[str, object] = {}
    if args.log_level:
        overrides["log_level"] = args.log_level
    if getattr(args, "indent", None) is not None:
        overrides["indent"] = args.indent
    settings = Settings._apply_mapping(settings, overrides)
    logging.basicConfig(level=settings.log_level, format="[%(levelname)s] %(message)s")
    logger.debug("effective settings: %s", settings)
    return settings


def _read_input(file: str) -> str:
    if file == "-":
        text = sys.stdin.read()
        logger.info("read %d characters from stdin", len(text))
        return text
    text = Path(file).read_text(encoding="utf-8")
    logger.info("read %d characters from %s", len(text), file)
    return text


def _summary(policy: PlacementPolicy) -> str:
    return (
        f"{len(policy.replicas)} replicas, {len(policy.selectors)} selectors, "
        f"{len(policy.filters)} filters"
    )


def _run(fn: Callable[[argparse.Namespace], int], args: argparse.Namespace) -> int:
    try:
        return fn(args)
    except PolicyError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"[ERROR] cannot read input: {e}", file=sys.stderr)
        return 1


def _compile(args: argparse.Namespace) -> int:
    settings = _setup(args)
    policy = parse(_read_input(args.file))
    print(to_json(policy, indent=settings.indent).decode("utf-8"))
    return 0


def _decompile(args: argparse.Namespace) -> int:
    settings = _setup(args)
    policy = from_json(_read_input(args.file))
    if settings.strict_json:
        validate(policy)
    print(to_text(policy))
    return 0


def _check(args: argparse.Namespace) -> int:
    _setup(args)
    text = _read_input(args.file)
    if args.json:
        # Decoding alone does not check references; do it explicitly here.
        policy = from_json(text)
        validate(policy)
    else:
        policy = parse(text)
    print(f"[INFO] OK: {_summary(policy)}")
    return 0


def _cmd_compile(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="placement compile", description="Compile policy text into JSON."
    )
    _add_common(p)
    p.add_argument("--indent", type=int, default=None, help="Pretty-print JSON with this indent.")
    return _run(_compile, p.parse_args(argv))


def _cmd_decompile(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="placement decompile", description="Render a JSON policy as policy text."
    )
    _add_common(p)
    return _run(_decompile, p.parse_args(argv))


def _cmd_check(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="placement check", description="Check a policy (text by default, or JSON)."
    )
    _add_common(p)
    p.add_argument("--json", action="store_true", help="Input is a JSON policy document.")
    return _run(_check, p.parse_args(argv))


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="placement", description="Placement policy compiler CLI.")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("compile", help="policy text -> JSON")
    sub.add_parser("decompile", help="JSON -> policy text")
    sub.add_parser("check", help="validate a policy")
    return p


_COMMANDS = {
    "compile": _cmd_compile,
    "decompile": _cmd_decompile,
    "check": _cmd_check,
}


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv:
        build_argparser().print_help()
        return
    cmd, rest = argv[0], argv[1:]
    handler = _COMMANDS.get(cmd)
    if handler is None:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        code = 2
    else:
        code = handler(rest)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
