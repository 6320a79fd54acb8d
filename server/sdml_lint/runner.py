"""
Lint runner and CLI for the sdml-lint engine.

A ``LintRunner`` owns the current rule table and delivers one
``DiagnosticBatch`` per request to its host. Each request is executed by
its own ``LintRun``, which walks the states IDLE -> RUNNING -> FINISHED (or
FAILED when no syntax tree can be obtained).
"""

import argparse
import concurrent.futures
import json
import logging
import os
import subprocess
import sys
import threading
import time
from typing import Dict, List, Mapping, Optional, Sequence

from .adapters import LanguageAdapter
from .config import EngineConfig, find_config_file, load_config
from .diagnostics import build_diagnostics
from .matcher import QueryMatcher
from .registry import get_adapter, get_adapter_for_file, list_supported_languages
from .schema import report_to_json, validate_report
from .suppressions import filter_suppressed
from .table import RuleTable
from .types import (ConfigError, Diagnostic, DiagnosticBatch, DiagnosticsHost, LintRequest,
                    RuleError, RunState, Severity, TreeAcquisitionError)

logger = logging.getLogger(__name__)

_TRANSITIONS = {
    RunState.IDLE: {RunState.RUNNING},
    RunState.RUNNING: {RunState.FINISHED, RunState.FAILED},
    RunState.FINISHED: set(),
    RunState.FAILED: set(),
}


class LintRun:
    """One execution of a rule table against one tree snapshot.

    All mutable state of a run lives here, so overlapping runs on different
    snapshots never share anything but the (immutable) table and the
    matcher's lock-guarded query cache.
    """

    def __init__(self, request: LintRequest, table: RuleTable, matcher: QueryMatcher,
                 adapters: Optional[Mapping[str, LanguageAdapter]] = None,
                 default_language: Optional[str] = None,
                 threshold: Severity = Severity.INFO,
                 suppressions: bool = True):
        self.request = request
        self.table = table
        self.matcher = matcher
        self.adapters = adapters
        self.default_language = default_language
        self.threshold = threshold
        self.suppressions = suppressions
        self.state = RunState.IDLE
        self.diagnostics: List[Diagnostic] = []
        self.rule_errors: List[RuleError] = []
        self.rules_run = 0

    def _transition(self, new_state: RunState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid run transition {self.state.value} -> {new_state.value}")
        logger.debug(f"{self.request.path}@{self.request.version}: {self.state.value} -> {new_state.value}")
        self.state = new_state

    def _resolve_adapter(self) -> LanguageAdapter:
        request = self.request
        language = request.language
        if language:
            adapter = self.adapters.get(language) if self.adapters is not None else get_adapter(language)
            if adapter is None:
                raise TreeAcquisitionError(f"No grammar adapter for language '{language}'")
            return adapter

        if self.adapters is not None:
            for candidate in self.adapters.values():
                if request.path.lower().endswith(candidate.file_extensions):
                    return candidate
        else:
            adapter = get_adapter_for_file(request.path)
            if adapter is not None:
                return adapter

        if self.default_language:
            language = self.default_language
            adapter = self.adapters.get(language) if self.adapters is not None else get_adapter(language)
            if adapter is not None:
                return adapter
        raise TreeAcquisitionError(f"Cannot determine the language of {request.path}")

    def _acquire_tree(self, adapter: LanguageAdapter):
        language = adapter.get_language()
        if language is None:
            raise TreeAcquisitionError(f"Grammar for '{adapter.language_id}' is not installed")

        tree = self.request.tree
        if tree is None:
            try:
                tree = adapter.parse(self.request.text)
            except Exception as e:
                raise TreeAcquisitionError(f"Failed to parse {self.request.path}: {e}") from e
        if tree is None:
            raise TreeAcquisitionError(f"No syntax tree available for {self.request.path}")
        return language, tree

    def execute(self) -> DiagnosticBatch:
        """Run every enabled rule and return the batch. Callable once."""
        self._transition(RunState.RUNNING)
        request = self.request
        start_time = time.time()

        try:
            adapter = self._resolve_adapter()
            parse_start = time.time()
            language, tree = self._acquire_tree(adapter)
            parse_ms = (time.time() - parse_start) * 1000
        except TreeAcquisitionError as e:
            logger.error(f"Lint run failed for {request.path}@{request.version}: {e}")
            self._transition(RunState.FAILED)
            return DiagnosticBatch(
                document=request.path,
                version=request.version,
                status=RunState.FAILED,
                error=str(e),
                metrics={"parse_ms": 0.0, "rules_ms": 0.0,
                         "total_ms": (time.time() - start_time) * 1000},
            )

        source = request.text.encode('utf-8') if isinstance(request.text, str) else request.text
        rules = self.table.enabled(language=adapter.language_id, threshold=self.threshold)

        rules_start = time.time()
        for rule in rules:
            self.rules_run += 1
            result = self.matcher.run(rule, language, tree.root_node, source)
            if not result.ok:
                logger.warning(f"Rule '{rule.id}' skipped ({result.error.kind}): {result.error.message}")
                self.rule_errors.append(result.error)
                continue
            self.diagnostics.extend(build_diagnostics(rule, result))
        rules_ms = (time.time() - rules_start) * 1000

        diagnostics = self.diagnostics
        if self.suppressions:
            text = request.text if isinstance(request.text, str) else request.text.decode('utf-8', errors='replace')
            diagnostics = filter_suppressed(diagnostics, text, adapter.comment_prefix)

        self._transition(RunState.FINISHED)
        return DiagnosticBatch(
            document=request.path,
            version=request.version,
            status=RunState.FINISHED,
            diagnostics=tuple(diagnostics),
            rule_errors=tuple(self.rule_errors),
            rules_run=self.rules_run,
            metrics={"parse_ms": parse_ms, "rules_ms": rules_ms,
                     "total_ms": (time.time() - start_time) * 1000},
        )


class LintRunner:
    """Runs lint requests against the current rule table.

    The table is swapped atomically by ``replace_table``; every run captures
    the table reference when it starts, so a swap never affects a run already
    in flight.
    """

    def __init__(self, table: Optional[RuleTable] = None, host: Optional[DiagnosticsHost] = None,
                 config: Optional[EngineConfig] = None,
                 adapters: Optional[Mapping[str, LanguageAdapter]] = None,
                 matcher: Optional[QueryMatcher] = None):
        self.config = config or EngineConfig()
        self.host = host
        self.adapters = adapters
        self.matcher = matcher or QueryMatcher()
        self._lock = threading.Lock()
        self._table = table if table is not None else self.config.build_table()

    @property
    def table(self) -> RuleTable:
        with self._lock:
            return self._table

    def replace_table(self, table: RuleTable) -> RuleTable:
        """Replace the whole rule table; returns the previous one."""
        if not isinstance(table, RuleTable):
            raise ConfigError("replace_table expects a RuleTable")
        with self._lock:
            previous, self._table = self._table, table
        logger.info(f"Rule table replaced ({len(previous)} -> {len(table)} rules)")
        return previous

    def reload_config(self, config: EngineConfig) -> RuleTable:
        """Adopt a new configuration and rebuild the table from it."""
        table = config.build_table()
        self.config = config
        return self.replace_table(table)

    def lint(self, request: LintRequest) -> DiagnosticBatch:
        """Lint one document version and report the batch to the host once."""
        run = LintRun(
            request,
            self.table,
            self.matcher,
            adapters=self.adapters,
            default_language=self.config.language,
            threshold=self.config.threshold,
            suppressions=self.config.suppressions,
        )
        batch = run.execute()
        if self.host is not None:
            self.host.report(batch)
        return batch

    def lint_text(self, path: str, text: str, version: int = 0,
                  language: Optional[str] = None) -> DiagnosticBatch:
        return self.lint(LintRequest(path=path, text=text, version=version, language=language))

    def lint_file(self, file_path: str, language: Optional[str] = None) -> DiagnosticBatch:
        """Read a file from disk and lint it. Unreadable files produce a failed batch.

        The file is linted as raw bytes, so diagnostic byte offsets index the
        file as stored (CRLF endings and undecodable bytes included).
        """
        try:
            with open(file_path, 'rb') as f:
                content = f.read()
        except OSError as e:
            logger.error(f"Could not read {file_path}: {e}")
            batch = DiagnosticBatch(document=file_path, version=0, status=RunState.FAILED,
                                    error=f"Could not read file: {e}",
                                    metrics={"parse_ms": 0.0, "rules_ms": 0.0, "total_ms": 0.0})
            if self.host is not None:
                self.host.report(batch)
            return batch
        return self.lint(LintRequest(path=file_path, text=content, language=language))


def collect_files(paths: Sequence[str], language: Optional[str] = None) -> List[str]:
    """Collect files to lint: explicit files as given, directories by grammar extensions."""
    languages = [language] if language else list_supported_languages()
    files = []
    for path in paths:
        if os.path.isfile(path):
            files.append(path)
        elif os.path.isdir(path):
            for lang in languages:
                adapter = get_adapter(lang)
                if adapter is not None:
                    files.extend(adapter.list_files([path]))
        else:
            logger.warning(f"Path '{path}' does not exist")
    return sorted(set(files))


def lint_paths(runner: LintRunner, files: Sequence[str], language: Optional[str] = None,
               jobs: int = 1) -> List[DiagnosticBatch]:
    """Lint each file; with ``jobs`` > 1 files are linted on a thread pool."""
    if jobs <= 1 or len(files) <= 1:
        return [runner.lint_file(f, language=language) for f in files]

    with concurrent.futures.ThreadPoolExecutor(max_workers=jobs) as executor:
        return list(executor.map(lambda f: runner.lint_file(f, language=language), files))


def format_text(batches: Sequence[DiagnosticBatch]) -> str:
    """Render batches as ``path:line:col: severity: message [rule]`` lines."""
    lines = []
    for batch in batches:
        if batch.status is RunState.FAILED:
            lines.append(f"{batch.document}: failed: {batch.error}")
            continue
        for d in batch.diagnostics:
            lines.append(f"{batch.document}:{d.start_line}:{d.start_col + 1}: "
                         f"{d.severity.value}: {d.message} [{d.rule_id}]")
        for e in batch.rule_errors:
            lines.append(f"{batch.document}: rule '{e.rule_id}' skipped ({e.kind}): {e.message}")
    return "\n".join(lines)


def sum_metrics(batches: Sequence[DiagnosticBatch]) -> Dict[str, float]:
    totals = {"parse_ms": 0.0, "rules_ms": 0.0, "total_ms": 0.0}
    for batch in batches:
        for key in totals:
            totals[key] += batch.metrics.get(key, 0.0)
    return totals


def exit_code(batches: Sequence[DiagnosticBatch]) -> int:
    for batch in batches:
        if batch.status is RunState.FAILED:
            return 1
        if any(d.severity is Severity.ERROR for d in batch.diagnostics):
            return 1
    return 0


def _spelling_output(files: Sequence[str], language: Optional[str], checker=None) -> List[str]:
    from .spelling import AspellChecker, check_spelling, iter_text_regions

    if checker is None:
        checker = AspellChecker()
        if not checker.is_available():
            logger.warning("aspell not found on PATH; skipping spell check")
            return []

    lines = []
    for file_path in files:
        adapter = get_adapter(language) if language else get_adapter_for_file(file_path)
        if adapter is None or not adapter.text_node_types:
            continue
        try:
            with open(file_path, 'rb') as f:
                content = f.read()
            tree = adapter.parse(content)
            if tree is None:
                continue
            regions = iter_text_regions(tree, adapter.text_node_types, content)
            diagnostics = check_spelling(regions, checker)
        except (OSError, subprocess.CalledProcessError) as e:
            logger.warning(f"Spell check skipped for {file_path}: {e}")
            continue
        for d in diagnostics:
            lines.append(f"{file_path}:{d.start_line}:{d.start_col + 1}: info: {d.message} [{d.rule_id}]")
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sdml-lint",
        description="Structural lint for SDML (and other tree-sitter grammars) driven by declarative query rules.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sdml-lint models/
  sdml-lint --format json --rules 'type-*' model.sdm
  sdml-lint --config lint.yml --language python src/
        """,
    )
    parser.add_argument("paths", nargs="*", help="Files or directories to lint")
    parser.add_argument("--config", help="Path to a YAML config file (default: search upward)")
    parser.add_argument("--language", help="Grammar to use for every file (default: by extension)")
    parser.add_argument("--format", choices=["text", "json"], default="text", help="Output format")
    parser.add_argument("--rules", help="Comma-separated rule id globs to enable")
    parser.add_argument("--severity-threshold", choices=["info", "warning", "error"],
                        help="Skip rules below this severity")
    parser.add_argument("--no-suppressions", action="store_true",
                        help="Ignore 'sdml-lint: ignore[...]' comments")
    parser.add_argument("--list-rules", action="store_true", help="List the effective rule table and exit")
    parser.add_argument("--spelling", action="store_true",
                        help="Also spell-check strings and comments with aspell")
    parser.add_argument("--jobs", type=int, default=1, help="Lint files on this many threads")
    parser.add_argument("--validate", action="store_true", help="Validate JSON output against the schema")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config_path = args.config or find_config_file(args.paths[0] if args.paths else ".")
        config = load_config(config_path)
        if args.language:
            config.language = args.language
        if args.rules:
            config.enabled_rules = [p.strip() for p in args.rules.split(",") if p.strip()]
        if args.severity_threshold:
            config.severity_threshold = args.severity_threshold
        if args.no_suppressions:
            config.suppressions = False
        runner = LintRunner(config=config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.list_rules:
        for rule in runner.table:
            state = rule.severity.value if rule.enabled else "disabled"
            print(f"{rule.id:32} {rule.language:8} {state:9} {rule.message}")
        return 0

    if not args.paths:
        print("Error: no paths given", file=sys.stderr)
        return 2

    files = collect_files(args.paths, args.language)
    start_time = time.time()
    batches = lint_paths(runner, files, language=args.language, jobs=args.jobs)
    metrics = sum_metrics(batches)
    metrics["total_ms"] = (time.time() - start_time) * 1000

    if args.format == "json":
        rules_count = len(runner.table.enabled(threshold=runner.config.threshold))
        report = report_to_json(batches, rules_count, metrics)
        if args.validate:
            for error in validate_report(report):
                logger.error(error)
        print(json.dumps(report, indent=2))
    else:
        output = format_text(batches)
        if output:
            print(output)

    if args.spelling:
        if args.format == "json":
            logger.warning("--spelling is only reported in text output")
        else:
            for line in _spelling_output(files, args.language):
                print(line)

    return exit_code(batches)


if __name__ == "__main__":
    sys.exit(main())
