"""contractfuzz CLI: negative and boundary testing of OpenAPI-described services.

Usage:
    contractfuzz run <contract> --server <url>   Fuzz every selected operation
    contractfuzz list fuzzers                    Show the registered fuzzers
    contractfuzz list paths <contract>           Show the contract paths
    contractfuzz config                          Show current configuration

Examples:
    contractfuzz run openapi.yml --server http://localhost:8080
    contractfuzz run openapi.yml --server http://localhost:8080 -H "Authorization=Bearer abc" \\
        --paths "/pets*" --http-methods POST,PUT --skip-fuzzers EmptyBody
    contractfuzz run openapi.yml --server http://localhost:8080 --headers headers.yml \\
        --ref-data refs.yml --url-params version:v2
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from contractfuzz import __version__
from contractfuzz.core.errors import ConfigLoadError, ContractFuzzError, ExitCode
from contractfuzz.core.types import EdgeSpacesStrategy, FuzzerPhase, HttpMethod, ResponseCodeFamily


# ── Coloured output helpers ──────────────────────────────────────────────────

_RESET = "\033[0m"
_BOLD = "\033[1m"
_RED = "\033[91m"
_YELLOW = "\033[93m"
_GREEN = "\033[92m"
_CYAN = "\033[96m"
_DIM = "\033[2m"


def _c(text: str, code: str) -> str:
    return f"{code}{text}{_RESET}"


# ── Banner ───────────────────────────────────────────────────────────────────

BANNER = rf"""
{_BOLD}{_CYAN}  ___ ___  _  _ _____ ___    _   ___ _____ ___ _   _ ___________
 / __/ _ \| \| |_   _| _ \  /_\ / __|_   _| __| | | |_  /_  /
| (_| (_) | .` | | | |   / / _ \ (__  | | | _|| |_| |/ / / /
 \___\___/|_|\_| |_| |_|_\/_/ \_\___| |_| |_|  \___//___/___|{_RESET}
  {_DIM}OpenAPI negative and boundary fuzzer, v{__version__}{_RESET}
"""


# ── Argument helpers ─────────────────────────────────────────────────────────


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _methods(value: str) -> frozenset[HttpMethod]:
    try:
        return frozenset(HttpMethod.parse(item) for item in _csv(value))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid HTTP method list: {value}") from exc


def _families(value: str) -> frozenset[ResponseCodeFamily]:
    try:
        return frozenset(ResponseCodeFamily.parse(item) for item in _csv(value))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_cli_headers(values: list[str] | None) -> dict[str, str]:
    """``-H name=value`` pairs; the first ``=`` separates name and value."""
    headers: dict[str, str] = {}
    for item in values or ():
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise ConfigLoadError(f"Invalid header {item!r}, expected name=value")
        headers[name.strip()] = value
    return headers


# ── CLI argument parser ─────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contractfuzz",
        description="contractfuzz: OpenAPI negative and boundary fuzzer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    parser.add_argument("--no-banner", action="store_true", help="Suppress the startup banner")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only report failures and the summary")

    sub = parser.add_subparsers(dest="command")

    # ── run ──────────────────────────────────────────────────────────────────
    run_p = sub.add_parser("run", help="Fuzz a running service described by a contract")
    run_p.add_argument("contract", help="Path to the OpenAPI contract (YAML or JSON)")
    run_p.add_argument("--server", "-s", help="Base URL of the service under test")
    run_p.add_argument("--headers", help="YAML file with headers per path (or 'all')")
    run_p.add_argument(
        "-H",
        dest="header",
        action="append",
        metavar="NAME=VALUE",
        help="Header sent on every request; repeatable, overrides --headers",
    )
    run_p.add_argument("--query-params", help="YAML file with extra query params per path (or 'all')")
    run_p.add_argument("--ref-data", help="YAML file with reference data per path (or 'all')")
    run_p.add_argument("--url-params", type=_csv, help="Comma-separated name:value path template values")
    run_p.add_argument("--paths", type=_csv, help="Comma-separated paths or glob patterns to fuzz")
    run_p.add_argument("--skip-paths", type=_csv, help="Comma-separated paths or glob patterns to skip")
    run_p.add_argument("--http-methods", type=_methods, help="Comma-separated HTTP methods to fuzz")
    run_p.add_argument(
        "--response-codes",
        type=_families,
        help="Only fuzz operations declaring a response in these families (e.g. 2XX,4XX)",
    )
    run_p.add_argument("--fuzzers", type=_csv, help="Comma-separated fuzzers to run (default: all)")
    run_p.add_argument("--skip-fuzzers", type=_csv, help="Comma-separated fuzzers to skip")
    run_p.add_argument(
        "--edge-spaces-strategy",
        choices=[s.value for s in EdgeSpacesStrategy],
        help="Whether the service trims values before or after validating them",
    )
    run_p.add_argument("--no-emojis", action="store_true", help="Disable the emoji fuzzers")
    run_p.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    run_p.add_argument("--check-update", action="store_true", help="Check for a newer release in the background")
    run_p.add_argument("--log-level", help="Minimum log level (default from settings)")

    # ── list ─────────────────────────────────────────────────────────────────
    list_p = sub.add_parser("list", help="List fuzzers or contract paths")
    list_sub = list_p.add_subparsers(dest="what")
    list_sub.add_parser("fuzzers", help="Show the registered fuzzers")
    paths_p = list_sub.add_parser("paths", help="Show the paths of a contract")
    paths_p.add_argument("contract", help="Path to the OpenAPI contract")

    # ── config ───────────────────────────────────────────────────────────────
    sub.add_parser("config", help="Show current configuration")

    return parser


# ── Run command ──────────────────────────────────────────────────────────────


def _print_summary(summary, quiet: bool = False) -> None:
    colour = _RED if summary.has_issues else _GREEN
    print(f"\n{_BOLD}Run complete{_RESET}")
    print(
        f"  Tests: {summary.total_executed}"
        f"  |  Passed: {_c(str(summary.passed), _GREEN)}"
        f"  |  Functional failures: {_c(str(summary.functional_failures), colour)}"
        f"  |  Execution errors: {_c(str(summary.execution_errors), colour)}"
    )
    if not quiet and summary.execution_errors:
        print(f"  {_DIM}Auth errors: {summary.auth_errors}  |  IO errors: {summary.io_errors}{_RESET}")
    print()


async def _run_fuzz(args: argparse.Namespace) -> int:
    """Load config and contract, then fuzz. Fatal errors exit with 192."""
    from contractfuzz.contract.loader import load_contract
    from contractfuzz.core.config import RunOptions, get_settings
    from contractfuzz.core.logging import setup_logging
    from contractfuzz.core.resolver import ConfigResolver
    from contractfuzz.core.version_check import VersionChecker
    from contractfuzz.pipeline.orchestrator import FuzzingOrchestrator, exit_code_for
    from contractfuzz.reporting.listener import LoggingReporter

    settings = get_settings()
    setup_logging(settings.app_env, args.log_level or settings.log_level, use_color=sys.stderr.isatty())

    try:
        resolver = ConfigResolver.load(
            headers_file=args.headers,
            query_file=args.query_params,
            ref_data_file=args.ref_data,
            cli_headers=parse_cli_headers(args.header),
            url_params=args.url_params,
        )
        contract = load_contract(args.contract)
    except ContractFuzzError as exc:
        print(_c(f"Error: {exc.message}", _RED), file=sys.stderr)
        return int(ExitCode.FATAL)

    options = RunOptions.from_settings(
        settings,
        server_url=args.server,
        timeout=args.timeout,
        paths=tuple(args.paths) if args.paths else None,
        skip_paths=tuple(args.skip_paths) if args.skip_paths else None,
        http_methods=args.http_methods,
        response_code_families=args.response_codes,
        fuzzers=tuple(args.fuzzers) if args.fuzzers else None,
        skip_fuzzers=tuple(args.skip_fuzzers) if args.skip_fuzzers else None,
        edge_spaces_strategy=EdgeSpacesStrategy(args.edge_spaces_strategy) if args.edge_spaces_strategy else None,
        include_emoji_fuzzers=False if args.no_emojis else None,
        check_update=True if args.check_update else None,
    )
    checker = VersionChecker(settings.update_check_url, timeout=settings.update_check_timeout_seconds)
    orchestrator = FuzzingOrchestrator(
        options,
        resolver=resolver,
        reporters=[LoggingReporter(quiet=args.quiet)],
        version_checker=checker,
    )

    summary = await orchestrator.run(contract)
    _print_summary(summary, quiet=args.quiet)
    update = orchestrator.update
    if update is not None and update.is_new_version:
        print(_c(f"  A new version is available: {update.latest} {update.release_url}", _YELLOW))
    return int(exit_code_for(summary))


# ── List command ─────────────────────────────────────────────────────────────


def _run_list(args: argparse.Namespace) -> int:
    if args.what == "fuzzers":
        from contractfuzz.fuzzer.registry import FuzzerRegistry

        registry = FuzzerRegistry()
        for phase, title in ((FuzzerPhase.FIRST, "Per-case fuzzers"), (FuzzerPhase.SECOND, "Per-path fuzzers")):
            entries = [e for e in registry.entries if e.phase == phase]
            print(f"\n{_BOLD}{title} ({len(entries)}){_RESET}")
            for entry in entries:
                print(f"  {_c(entry.name, _CYAN)}  {_DIM}{entry.description}{_RESET}")
        print()
        return int(ExitCode.OK)

    if args.what == "paths":
        from contractfuzz.contract.loader import load_contract

        try:
            contract = load_contract(args.contract)
        except ContractFuzzError as exc:
            print(_c(f"Error: {exc.message}", _RED), file=sys.stderr)
            return int(ExitCode.FATAL)
        print(f"\n{_BOLD}{contract.title or args.contract}{_RESET} ({len(contract.paths)} paths)\n")
        for path in sorted(contract.paths):
            methods = ", ".join(op.method.value for op in contract.paths[path])
            print(f"  {path}  {_DIM}{methods}{_RESET}")
        print()
        return int(ExitCode.OK)

    print("Usage: contractfuzz list {fuzzers|paths <contract>}", file=sys.stderr)
    return int(ExitCode.OK)


# ── Config command ───────────────────────────────────────────────────────────


def _run_config() -> int:
    """Print current settings."""
    from contractfuzz.core.config import get_settings

    s = get_settings()
    print(f"\n{_BOLD}contractfuzz configuration{_RESET}\n")
    for field_name in sorted(type(s).model_fields.keys()):
        val = getattr(s, field_name, "")
        if hasattr(val, "value"):
            val = val.value
        print(f"  {_DIM}{field_name}:{_RESET}  {val}")
    print()
    return int(ExitCode.OK)


# ── Entrypoint ───────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"contractfuzz {__version__}")
        return int(ExitCode.OK)

    if not args.no_banner and not args.quiet:
        print(BANNER, file=sys.stderr)

    if not args.command:
        parser.print_help()
        return int(ExitCode.OK)

    if args.command == "config":
        return _run_config()

    if args.command == "list":
        return _run_list(args)

    if args.command == "run":
        return asyncio.run(_run_fuzz(args))

    parser.print_help()
    return int(ExitCode.OK)


if __name__ == "__main__":
    sys.exit(main())
