"""
Case Runner

Runs registered cases over every row of their data sources, then reports.
"""

import json
from pathlib import Path
from typing import Iterable, List, Optional, Type, Union

from rich.console import Console
from rich.table import Table

from .case import CaseResult, CaseStatus, ContractCase
from .cases import CASES
from .config import CaseConfig
from .datasource import load_rows
from .exceptions import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)


def run_case(case_cls: Type[ContractCase], config: Optional[CaseConfig] = None,
             fail_fast: bool = False) -> List[CaseResult]:
    """Execute *case_cls* once per runnable row of its data source."""
    config = config or CaseConfig()
    if case_cls.data_source is None:
        raise ConfigurationError(f"{case_cls.__name__} has no data source")

    rows = load_rows(case_cls.data_source, config.datasource.data_dir)
    if not rows:
        logger.warning("%s: no runnable rows in %s", case_cls.name, case_cls.data_source.file)

    results = []
    for params in rows:
        result = case_cls(config).execute(params)
        results.append(result)
        if fail_fast and not result.passed:
            break
    return results


def run_cases(names: Optional[Iterable[str]] = None, config: Optional[CaseConfig] = None,
              fail_fast: bool = False) -> List[CaseResult]:
    """
    Run the named cases (all registered cases when *names* is empty).

    Raises:
        ConfigurationError: a name is not registered
    """
    config = config or CaseConfig()
    selected = list(names or CASES)
    unknown = [name for name in selected if name not in CASES]
    if unknown:
        raise ConfigurationError(f"Unknown case(s): {', '.join(unknown)}")

    results: List[CaseResult] = []
    for name in selected:
        results.extend(run_case(CASES[name], config, fail_fast=fail_fast))
        if fail_fast and any(not r.passed for r in results):
            break
    return results


def summarize(results: List[CaseResult]) -> dict:
    counts = {status.value: 0 for status in CaseStatus}
    for result in results:
        counts[result.status.value] += 1
    counts["total"] = len(results)
    return counts


def write_report(results: List[CaseResult], path: Union[str, Path],
                 config: Optional[CaseConfig] = None) -> Path:
    """Write a JSON report with every step of every result."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    report = {
        "summary": summarize(results),
        "config": config.to_dict() if config else None,
        "results": [result.to_dict() for result in results],
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report, f, indent=2)
    logger.info("Report written to %s", path)
    return path


_STATUS_STYLE = {
    CaseStatus.PASSED: "bold green",
    CaseStatus.FAILED: "bold red",
    CaseStatus.ERROR: "bold red reverse",
}


def render_summary(results: List[CaseResult], console: Optional[Console] = None) -> None:
    console = console or Console()
    table = Table(title="Contract cases")
    table.add_column("Case")
    table.add_column("Row")
    table.add_column("Status")
    table.add_column("Steps", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Time (s)", justify="right")
    for result in results:
        failed = sum(1 for o in result.outcomes if not o.passed)
        table.add_row(
            result.case_name,
            result.label,
            f"[{_STATUS_STYLE[result.status]}]{result.status.value.upper()}[/]",
            str(len(result.outcomes)),
            str(failed),
            f"{result.duration:.3f}",
        )
    console.print(table)
    counts = summarize(results)
    console.print(
        f"{counts['total']} run, {counts['passed']} passed, "
        f"{counts['failed']} failed, {counts['error']} error"
    )
