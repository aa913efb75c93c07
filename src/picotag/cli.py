"""Command-line interface for picotag."""

from __future__ import annotations

import argparse
import io
import sys
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from picotag.errors import ParseError
from picotag.logger import get_logger, setup_logger

logger = get_logger(__name__)


class ConfigError(Exception):
    """Raised when a config file cannot be read or has the wrong shape."""


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path | None  # None reads stdin
    output_file: Path | None
    mode: str
    strict: bool
    max_depth: int
    placeholders: dict[str, str] = field(default_factory=dict)
    debug: bool = False
    verbosity: int = 0

    @property
    def display_name(self) -> str:
        return str(self.input_file) if self.input_file is not None else "<stdin>"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="picotag",
        description="Parse picotag markup into styled text",
    )
    p.add_argument("input", help="Input markup file ('-' for stdin)")
    p.add_argument("-o", "--output", help="Output file (default: stdout)")
    mode = p.add_mutually_exclusive_group()
    mode.add_argument(
        "--strip",
        dest="mode",
        action="store_const",
        const="strip",
        help="Print the input with every tag removed",
    )
    mode.add_argument(
        "--escape",
        dest="mode",
        action="store_const",
        const="escape",
        help="Print the input with every tag escaped",
    )
    mode.add_argument(
        "--tree",
        dest="mode",
        action="store_const",
        const="tree",
        help="Print the parsed styled-text tree",
    )
    p.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Treat unknown tags, bad arguments and unmatched closes as errors",
    )
    p.add_argument(
        "-p",
        "--placeholder",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Bind a string placeholder (repeatable)",
    )
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover picotag.toml)",
    )
    p.add_argument("--debug", action="store_true", help="Dump the parsed tree to stderr")
    p.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (repeatable)",
    )
    return p


def parse_placeholder_arg(s: str) -> tuple[str, str]:
    """Parse a NAME=VALUE string into (name, value)."""
    if "=" not in s:
        raise argparse.ArgumentTypeError(f"invalid placeholder format (expected NAME=VALUE): {s}")
    name, _, value = s.partition("=")
    return name, value


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict when none is found.

    An explicitly named config file must exist.
    """
    path = config_path if config_path is not None else input_dir / "picotag.toml"

    if not path.is_file():
        if config_path is not None:
            raise ConfigError(f"config file not found: {path}")
        return {}

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid config file {path}: {exc}") from None


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: config file < CLI flags.
    """
    input_file = None if args.input == "-" else Path(args.input)
    input_dir = input_file.parent if input_file is not None else Path(".")
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)

    strict = config.get("strict", False)
    if not isinstance(strict, bool):
        raise ConfigError("config key 'strict' must be a boolean")
    if args.strict is not None:
        strict = args.strict

    max_depth = config.get("max_depth", 64)
    if isinstance(max_depth, bool) or not isinstance(max_depth, int) or max_depth < 1:
        raise ConfigError("config key 'max_depth' must be a positive integer")

    # Placeholders: config < CLI
    placeholders: dict[str, str] = {}
    cfg_placeholders = config.get("placeholders")
    if cfg_placeholders is not None and not isinstance(cfg_placeholders, dict):
        raise ConfigError("config key 'placeholders' must be a table")
    for k, v in (cfg_placeholders or {}).items():
        placeholders[str(k)] = str(v)
    for raw in args.placeholder:
        name, value = parse_placeholder_arg(raw)
        placeholders[name] = value

    output_file = Path(args.output) if args.output else None

    return CliOptions(
        input_file=input_file,
        output_file=output_file,
        mode=args.mode or "plain",
        strict=strict,
        max_depth=max_depth,
        placeholders=placeholders,
        debug=args.debug,
        verbosity=args.verbose,
    )


def read_source(options: CliOptions) -> str:
    if options.input_file is None:
        return sys.stdin.read()
    return options.input_file.read_text(encoding="utf-8")


def process(source: str, options: CliOptions) -> str:
    """Run the selected mode over ``source`` and return the output text."""
    from picotag.debug import dump_tree
    from picotag.escaping import escape_tokens, strip_tokens
    from picotag.parser import ParserOptions, parse
    from picotag.render import plain_text

    if options.mode == "strip":
        return strip_tokens(source)
    if options.mode == "escape":
        return escape_tokens(source)

    def report(message: str) -> None:
        logger.warning("%s: warning: %s", options.display_name, message)

    parser_options = ParserOptions(
        strict=options.strict,
        on_error=report,
        max_depth=options.max_depth,
    )
    tree = parse(source, options.placeholders, options=parser_options)

    if options.debug:
        dump_tree(tree)

    if options.mode == "tree":
        buf = io.StringIO()
        dump_tree(tree, file=buf)
        return buf.getvalue()
    return plain_text(tree)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2). Does not call sys.exit()."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logger(args.verbose + 1)

    try:
        options = resolve_options(args)
    except (argparse.ArgumentTypeError, ConfigError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    try:
        source = read_source(options)
    except OSError as exc:
        print(f"error: cannot read {options.display_name}: {exc.strerror}", file=sys.stderr)
        return 2

    try:
        output = process(source, options)
    except ParseError as exc:
        print(exc.format(options.display_name), file=sys.stderr)
        return 1

    if options.output_file:
        options.output_file.write_text(output, encoding="utf-8")
    else:
        sys.stdout.write(output)

    return 0
