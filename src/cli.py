"""Command-line interface for callscan."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from artifacts import build_emitter
from contract.columns import OUTPUT_FORMATS
from frontend.libclang import ClangFrontend
from rules.config import ConfigError, ScanConfig, load_config
from scan.files import find_cpp_sources
from scan.pipeline import CallScanner, run_scan

_EPILOG = """\
The noexcept column reports the callee's declared exception specification
only: a noexcept function that would terminate on a throw is still
'noexcept', and a function without a specification that never throws is
still 'may-throw'.

Calls are reported from the code as written. Bodies of implicit template
instantiations are not visited, so a call made only inside an instantiated
template (such as t.foo() in a function template) produces no row.

Compiler flags after '--' take precedence over any compilation database.
"""

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})

# Boolean options read a value only when given as ``--flag=VALUE``.
_BOOL_FLAGS = ("--only-std", "--csv-header")


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    msg = f"invalid boolean value: {value!r}"
    raise argparse.ArgumentTypeError(msg)


def _add_bool_option(
    parser: argparse.ArgumentParser, flag: str, help_text: str
) -> None:
    parser.add_argument(
        flag,
        nargs="?",
        const=True,
        default=None,
        type=_parse_bool,
        metavar="BOOL",
        help=help_text,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="callscan",
        description=(
            "Report every call site in C++ translation units with its callee "
            "and declared exception guarantee, as CSV."
        ),
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="Source files or directories to scan (directories are expanded)",
    )
    parser.add_argument(
        "-p",
        "--build-path",
        default=None,
        help="Directory containing compile_commands.json (default: auto-detect)",
    )
    parser.add_argument(
        "--extra-arg",
        action="append",
        default=None,
        metavar="FLAG",
        help="Compiler flag appended to every compile command (repeatable)",
    )
    _add_bool_option(
        parser, "--only-std", "Report only callees in the std:: namespace"
    )
    parser.add_argument(
        "--name-prefix",
        default=None,
        help="Report only qualified names starting with this literal prefix",
    )
    _add_bool_option(parser, "--csv-header", "Print the CSV header row first")
    parser.add_argument(
        "--include-system-headers",
        action="store_true",
        default=None,
        help="Also report call sites expanded inside system headers",
    )
    parser.add_argument(
        "--flatten-snippets",
        action="store_true",
        default=None,
        help="Collapse whitespace and newlines in the callee-source column",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output encoding (default: csv)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Configuration file (default: ./callscan.toml when present)",
    )
    parser.add_argument(
        "--libclang",
        default=None,
        help="Path to the libclang shared library",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging on stderr",
    )
    return parser


def _split_fixed_args(argv: list[str]) -> tuple[list[str], list[str] | None]:
    """Separate compiler flags given after ``--`` from callscan's own options."""
    if "--" not in argv:
        return argv, None
    index = argv.index("--")
    return argv[:index], argv[index + 1 :]


def _normalize_argv(argv: list[str]) -> list[str]:
    """Attach option values that argparse would otherwise read as options.

    Bare boolean flags become ``--flag=true`` and ``--extra-arg -Wall``
    becomes ``--extra-arg=-Wall``.
    """
    normalized: list[str] = []
    pending = iter(argv)
    for arg in pending:
        if arg in _BOOL_FLAGS:
            normalized.append(f"{arg}=true")
        elif arg == "--extra-arg":
            value = next(pending, None)
            normalized.append(arg if value is None else f"{arg}={value}")
        else:
            normalized.append(arg)
    return normalized


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _resolve_config(args: argparse.Namespace) -> ScanConfig:
    config_path = Path(args.config).expanduser() if args.config else None
    config = load_config(Path.cwd(), config_path)

    overrides = {
        "only_std": args.only_std,
        "name_prefix": args.name_prefix,
        "csv_header": args.csv_header,
        "include_system_headers": args.include_system_headers,
        "flatten_snippets": args.flatten_snippets,
        "output_format": args.output_format,
        "build_path": args.build_path,
    }
    merged = config.model_dump()
    merged.update({key: value for key, value in overrides.items() if value is not None})
    if args.extra_arg:
        merged["extra_args"] = [*config.extra_args, *args.extra_arg]
    return ScanConfig.model_validate(merged)


def _expand_paths(raw_paths: list[str], config: ScanConfig) -> list[Path]:
    paths: list[Path] = []
    for raw in raw_paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            paths.extend(
                find_cpp_sources(
                    path,
                    exclude_patterns=config.exclude,
                    nested_gitignore=config.nested_gitignore,
                )
            )
        else:
            paths.append(path)
    return paths


def main(argv: list[str] | None = None) -> int:
    raw_argv = list(sys.argv[1:] if argv is None else argv)
    own_argv, fixed_args = _split_fixed_args(raw_argv)

    parser = _build_parser()
    args = parser.parse_args(_normalize_argv(own_argv))
    _configure_logging(args.verbose)

    try:
        config = _resolve_config(args)
    except ConfigError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    frontend = ClangFrontend(
        build_path=Path(config.build_path).expanduser() if config.build_path else None,
        fixed_args=fixed_args,
        extra_args=config.extra_args,
        prune_system_headers=not config.include_system_headers,
        library_file=args.libclang,
    )
    emitter = build_emitter(sys.stdout, config)
    if config.csv_header:
        emitter.write_header()

    scanner = CallScanner(
        emitter,
        config.filter_config(),
        include_system_headers=config.include_system_headers,
    )
    result = run_scan(
        frontend,
        _expand_paths(args.paths, config),
        scanner,
        errors=sys.stderr,
    )
    sys.stdout.flush()
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
