"""
CLI runner for the Loupe tree-sitter engine.

This module provides the main CLI entry point for loading configuration and
rule registries, scanning or measuring source files, and running ad-hoc dump
queries.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .config import EngineConfig, find_config_file, load_config
from .errors import QueryCompileError, RuleSchemaError, TreeConstructionError
from .metrics import clear_measurements, disable_rule_timing, enable_rule_timing, get_measurements, get_rule_timing
from .registry import filter_rules, get_adapter, load_rule_registry
from .scan_manager import ScanManager
from .schema import findings_to_json
from .types import MEASURE

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2


def setup_logging(level: str, verbose: bool = False) -> None:
    """Send engine diagnostics to stderr so stdout stays machine-readable."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _read_source(path: str) -> str:
    with open(path, 'r', encoding='utf-8', errors='replace') as f:
        return f.read()


def _resolve_config(args: argparse.Namespace) -> EngineConfig:
    config_path = args.config or find_config_file(".")
    config = load_config(config_path)
    if args.lang:
        config.language = args.lang
    if getattr(args, "rules", None):
        config.rules_path = args.rules
    if getattr(args, "timing", False):
        config.enable_timing = True
    return config


def run_analysis(paths: List[str], config: EngineConfig, operation: str) -> Dict[str, Any]:
    """
    Scan or measure every matching file under the given paths.

    Args:
        paths: Files or directories to analyze
        config: Engine configuration; rules_path must be set
        operation: "scan" or "measure"

    Returns:
        Output dictionary with findings, measurements and failures

    Raises:
        RuleSchemaError: If the rule registry is missing or invalid
        TreeConstructionError: If no adapter exists for the configured language
    """
    if not config.rules_path:
        raise RuleSchemaError("No rule registry given (use --rules or rules_path in the config)")

    adapter = get_adapter(config.language)
    if adapter is None:
        raise TreeConstructionError(f"No adapter found for language '{config.language}'")

    rules = filter_rules(load_rule_registry(config.rules_path), config.enabled_rules)
    if config.enable_timing:
        enable_rule_timing()
    clear_measurements()

    findings = []
    failed_files = []
    files = adapter.list_files(paths)
    try:
        for file_path in files:
            try:
                manager = ScanManager(adapter, file_path, _read_source(file_path), rules, config)
            except (OSError, TreeConstructionError) as e:
                logger.error("Skipping %s: %s", file_path, e)
                failed_files.append(file_path)
                continue
            results = manager.measure() if operation == MEASURE else manager.scan()
            findings.extend(findings_to_json(results))
    finally:
        if config.enable_timing:
            disable_rule_timing()

    output = {
        "files_scanned": len(files) - len(failed_files),
        "rules_run": len(rules),
        "findings": findings,
        "failed_files": failed_files,
    }
    if operation == MEASURE:
        output["measurements"] = get_measurements()
    if config.enable_timing:
        output["timing"] = get_rule_timing()
    return output


def run_dump(source_path: str, query: str, config: EngineConfig) -> str:
    """Run an ad-hoc query against one file and return the dump JSON."""
    manager = ScanManager(config.language, source_path, _read_source(source_path), [], config)
    return manager.dump(query)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loupe",
        description="Loupe tree-sitter rule engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  loupe scan --paths src/ --rules rules.yaml
  loupe measure --paths Account.java --rules rules.yaml --timing
  loupe dump --source Account.java --query "(method_declaration name: (identifier) @name)"
        """
    )
    parser.add_argument("--config", help="Path to configuration file")
    parser.add_argument("--lang", "--language", help="Language to analyze (default from config: java)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (("scan", "Report rule violations"), ("measure", "Record rule metrics")):
        sub = subparsers.add_parser(command, help=help_text)
        sub.add_argument("--paths", nargs="+", required=True, help="Files or directories to analyze")
        sub.add_argument("--rules", help="Rule registry file (YAML or JSON)")
        sub.add_argument("--timing", action="store_true", help="Include per-rule timing in the output")

    dump = subparsers.add_parser("dump", help="Print fragments matched by an ad-hoc query")
    dump.add_argument("--source", required=True, help="File to query")
    dump.add_argument("--query", default="", help="Tree-sitter query (default: class declarations)")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    config = _resolve_config(args)
    setup_logging(config.log_level, args.verbose)

    try:
        if args.command == "dump":
            print(run_dump(args.source, args.query, config))
        else:
            output = run_analysis(args.paths, config, args.command)
            print(json.dumps(output, indent=2))
    except (RuleSchemaError, TreeConstructionError, QueryCompileError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
