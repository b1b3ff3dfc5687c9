#!/usr/bin/env python3
"""
contractcase CLI

Usage:
    contractcase list
    contractcase run [NAMES...] [--config FILE] [--report FILE] [--fail-fast]
"""

from pathlib import Path
from typing import Optional, Tuple

import click

from .cases import CASES
from .config import load_config
from .exceptions import ContractCaseException
from .logger import configure_logging
from .runner import render_summary, run_cases, write_report


@click.group()
@click.version_option(version="0.1.0", prog_name="contractcase")
def cli():
    """Data-driven smart contract verification cases."""
    pass


@cli.command("list")
def list_cmd():
    """List registered cases."""
    for name, case in sorted(CASES.items()):
        source = case.data_source.file if case.data_source else "-"
        click.echo(f"{name}  ({source})  {case.description}")


@cli.command("run")
@click.argument("names", nargs=-1)
@click.option("--config", "-c", "config_path", type=click.Path(), help="Path to config.toml")
@click.option("--report", "-r", "report_path", type=click.Path(), help="Write a JSON report here")
@click.option("--data-dir", "-d", type=click.Path(file_okay=False), help="Directory holding data files")
@click.option("--fail-fast", is_flag=True, help="Stop after the first case that does not pass")
def run_cmd(names: Tuple[str, ...], config_path: Optional[str], report_path: Optional[str],
            data_dir: Optional[str], fail_fast: bool):
    """Run cases (all of them when no NAMES are given).

    Exits with status 1 when any case fails or errors.

    Examples:

        contractcase run

        contractcase run function.AssemblyReturnsTest --report out/report.json
    """
    try:
        config = load_config(config_path)
    except ContractCaseException as e:
        raise click.ClickException(f"Invalid configuration: {e}")

    configure_logging(config.logging.level, Path(config.logging.file) if config.logging.file else None)
    if data_dir:
        config.datasource.data_dir = data_dir
    fail_fast = fail_fast or config.report.fail_fast

    try:
        results = run_cases(names, config, fail_fast=fail_fast)
    except ContractCaseException as e:
        raise click.ClickException(str(e))

    render_summary(results)

    report = report_path or config.report.output
    if report:
        write_report(results, report, config)
        click.echo(f"Report: {report}")

    if not results or any(not r.passed for r in results):
        raise SystemExit(1)


def main():
    cli()


if __name__ == "__main__":
    main()
