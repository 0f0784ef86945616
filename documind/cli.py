"""CLI entrypoints for documind commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List

from .budgets import check_file_budget, check_manifest_budgets
from .config import ConfigError, DocuMindConfig, load_config
from .generator import GenerationError, Generator
from .index_builder import IndexBuildError, IndexBuilder
from .logging import configure_logging
from .manifest import ManifestError, load_manifest, validate_manifest
from .tokens import TokenCounter, TokenFileError


def _add_output_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    default: object = argparse.SUPPRESS if suppress_default else False
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Show debug output, including skipped sections.",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=default,
        help="Only report warnings and errors.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="documind",
        description="Generate human and AI-optimised documentation from manifests.",
    )
    _add_output_options(parser)
    parser.add_argument(
        "--root",
        default=".",
        help="Project root that output paths resolve against (defaults to current directory).",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write a DEBUG-level trace of the run to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Generate the human and AI documents for one manifest.",
    )
    _add_output_options(generate_parser, suppress_default=True)
    generate_parser.add_argument("manifest", help="Path to the manifest YAML file.")
    generate_parser.add_argument(
        "--var",
        dest="variables",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Template variable (repeatable), e.g. --var concept_name=auth.",
    )

    all_parser = subparsers.add_parser(
        "generate-all",
        help="Generate documents for every installed manifest.",
    )
    _add_output_options(all_parser, suppress_default=True)

    index_parser = subparsers.add_parser(
        "index",
        help="Rebuild the AI documentation master index.",
    )
    _add_output_options(index_parser, suppress_default=True)

    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate one or more manifest files.",
    )
    _add_output_options(validate_parser, suppress_default=True)
    validate_parser.add_argument("manifests", nargs="+", help="Manifest files to check.")

    tokens_parser = subparsers.add_parser(
        "tokens",
        help="Count tokens in a file, optionally against a manifest's budget.",
    )
    _add_output_options(tokens_parser, suppress_default=True)
    tokens_parser.add_argument("file", nargs="?", help="Text file to measure.")
    tokens_parser.add_argument(
        "--manifest",
        help="Manifest whose token_budget the file must fit (exit 1 when over).",
    )
    tokens_parser.add_argument(
        "--all-manifests",
        action="store_true",
        help="Check every installed manifest's template against its budget.",
    )

    return parser


def _parse_variables(parser: argparse.ArgumentParser, pairs: List[str]) -> Dict[str, str]:
    variables: Dict[str, str] = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name.strip():
            parser.error(f"--var expects NAME=VALUE, got {pair!r}")
        variables[name.strip()] = value
    return variables


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for documind commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose), quiet=bool(args.quiet), log_file=args.log_file
    )
    root = Path(args.root).expanduser().resolve()

    try:
        config = load_config(root)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    if args.command == "generate":
        variables = _parse_variables(parser, args.variables)
        try:
            manifest_path = Path(args.manifest).expanduser().resolve()
            result = Generator(config=config).generate_from_manifest(manifest_path, variables)
        except GenerationError as exc:
            parser.exit(1, f"{exc}\nRun with --verbose for more details.\n")
        print(f"Human document: {_relativize(result.human_path, root)}")
        print(f"AI document: {_relativize(result.ai_path, root)} ({result.token_count} tokens)")
    elif args.command == "generate-all":
        results = Generator(config=config).generate_all()
        for result in results:
            print(f"{_relativize(result.ai_path, root)} ({result.token_count} tokens)")
        print(f"Generated {len(results)} document pair(s)")
    elif args.command == "index":
        try:
            update = IndexBuilder.from_config(config).update_master_index()
        except IndexBuildError as exc:
            parser.exit(1, f"{exc}\n")
        print(f"Indexed {update.total_files} document(s) at {_relativize(update.index_path, root)}")
    elif args.command == "validate":
        failed = False
        templates_dir = config.resolve_templates_dir()
        for manifest in args.manifests:
            report = validate_manifest(Path(manifest), templates_dir=templates_dir)
            print(f"{manifest}: {'valid' if report.valid else 'invalid'}")
            for error in report.errors:
                print(f"  error: {error}")
            for warning in report.warnings:
                print(f"  warning: {warning}")
            failed = failed or not report.valid
        if failed:
            parser.exit(1)
    elif args.command == "tokens":
        _run_tokens(parser, args, config, root)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_tokens(
    parser: argparse.ArgumentParser, args: argparse.Namespace, config: DocuMindConfig, root: Path
) -> None:
    counter = TokenCounter(config.tokenizer.model, precise=config.tokenizer.precise)
    if args.all_manifests:
        reports = check_manifest_budgets(config, counter=counter)
        for report in reports:
            name = report.manifest_path.name
            if report.check is None:
                print(f"error {name}: {report.error}")
                continue
            check = report.check
            status = "ok" if check.within_budget else "over"
            print(f"{status} {name}: {check.count.tokens}/{check.max_tokens} tokens")
        print(f"Checked {len(reports)} manifest(s)")
        if not all(report.ok for report in reports):
            parser.exit(1)
        return

    if not args.file:
        parser.error("tokens expects FILE or --all-manifests")
    path = Path(args.file).expanduser().resolve()
    try:
        if args.manifest:
            manifest = load_manifest(Path(args.manifest).expanduser().resolve())
            check = check_file_budget(path, manifest, counter=counter)
        else:
            count = counter.count_file(path)
    except (ManifestError, TokenFileError, OSError) as exc:
        parser.exit(1, f"{exc}\n")

    label = _relativize(path, root)
    if not args.manifest:
        print(f"{label}: {count.tokens} tokens ({count.method})")
        return
    print(
        f"{label}: {check.count.tokens}/{check.max_tokens} tokens "
        f"({check.usage_percentage}%, {check.remaining} remaining)"
    )
    if not check.within_budget:
        parser.exit(1, f"Token count {check.count.tokens} exceeds budget {check.max_tokens}\n")


def _relativize(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
