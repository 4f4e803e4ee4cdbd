#!/usr/bin/env python3
"""psbuild CLI - build, test, install and scaffold script-module projects.

Commands:
- build: test, generate the manifest and package a release archive
- install: extract the latest archive into a modules directory
- init: scaffold a new project descriptor and folder layout
- test: run the project's test scripts
- info / clean: inspect a project, remove build output
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table
import typer

from psbuild.config import load_tool_config
from psbuild.core import PSBUILD_VERSION
from psbuild.distdir import clean_project
from psbuild.errors import PsBuildError, TestFailureError
from psbuild.logging_utils import configure_logging
from psbuild.models import ToolConfig
from psbuild.orchestrator import build as run_build
from psbuild.orchestrator import install as run_install
from psbuild.project import load_project
from psbuild.registry import PwshScriptHost, SessionRegistry
from psbuild.scaffold import default_init_options, scaffold_project
from psbuild.testrunner import run_tests

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="psbuild",
    help="Build, test and package script-module projects.",
    add_completion=False,
    no_args_is_help=True,
)


def _abort(exc: Exception) -> NoReturn:
    err_console.print(f"[red]Error:[/red] {exc}", soft_wrap=True)
    raise typer.Exit(code=1)


def _tool_config(ctx: typer.Context) -> ToolConfig:
    if isinstance(ctx.obj, ToolConfig):
        return ctx.obj
    return load_tool_config()


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"psbuild {PSBUILD_VERSION}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Path = typer.Option(
        None, "--config", "-c", help="Path to tool config (default: ~/.psbuild/config.yml)"
    ),
    log_level: str = typer.Option(None, "--log-level", help="Override the configured log level"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version"
    ),
):
    """Build, test and package script-module projects."""
    try:
        tool_config = load_tool_config(config)
    except PsBuildError as exc:
        _abort(exc)
    configure_logging(tool_config, log_level)
    ctx.obj = tool_config


@app.command()
def build(
    ctx: typer.Context,
    project_root: Path = typer.Argument(Path("."), help="Project root containing psproj.json"),
    module_name: str = typer.Argument(None, help="Module to build (default: rootModule)"),
):
    """Run tests, generate the manifest and package a release archive."""
    try:
        result = run_build(project_root, module_name, config=_tool_config(ctx))
    except TestFailureError as exc:
        if exc.output:
            console.print(exc.output, markup=False, highlight=False)
        _abort(exc)
    except PsBuildError as exc:
        _abort(exc)

    console.print(f"[green]✓[/green] Built {result.module_name}", soft_wrap=True)
    console.print(f"  Archive: {result.archive_path}", soft_wrap=True)
    console.print(f"  Tests: {result.test_report.passed}/{len(result.test_report.results)} passed")


@app.command()
def install(
    ctx: typer.Context,
    project_root: Path = typer.Argument(Path("."), help="Project root containing psproj.json"),
    modules_dir: Path = typer.Argument(None, help="Target modules directory"),
):
    """Install the latest built archive into a modules directory."""
    try:
        dest = run_install(project_root, modules_dir, config=_tool_config(ctx))
    except PsBuildError as exc:
        _abort(exc)
    console.print(f"[green]✓[/green] Installed into {dest}", soft_wrap=True)


@app.command()
def init(
    project_folder: Path = typer.Argument(None, help="Folder to initialize (default: current directory)"),
    name: str = typer.Option(None, "--name", help="Project name"),
    company: str = typer.Option(None, "--company", help="Company name"),
    version: str = typer.Option(None, "--version", help="Initial version"),
    description: str = typer.Option(None, "--description", help="Project description"),
    authors: list[str] = typer.Option(None, "--author", help="Author (repeatable)"),
    src: str = typer.Option(None, "--src", help="Source folder name"),
    dist: str = typer.Option(None, "--dist", help="Distribution folder name"),
    tests: str = typer.Option(None, "--tests", help="Tests folder name"),
    yes: bool = typer.Option(False, "-y", "--yes", help="Accept defaults without prompting"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing psproj.json"),
):
    """Scaffold a new project descriptor and folder layout."""
    options = default_init_options(project_folder)

    def ask(label: str, given: str | None, default: str) -> str:
        if given is not None:
            return given
        if yes:
            return default
        return Prompt.ask(label, default=default, console=console)

    options.project_name = ask("Project name", name, options.project_name)
    options.company_name = ask("Company", company, options.company_name)
    options.version = ask("Version", version, options.version)
    options.description = ask("Description", description, options.description)
    options.src = ask("Source folder", src, options.src)
    options.dist = ask("Distribution folder", dist, options.dist)
    options.tests = ask("Tests folder", tests, options.tests)
    if authors:
        options.authors = list(authors)

    try:
        descriptor = scaffold_project(options, overwrite=force)
    except PsBuildError as exc:
        _abort(exc)
    console.print(f"[green]✓[/green] Created {descriptor}", soft_wrap=True)


@app.command("test")
def test_command(
    ctx: typer.Context,
    project_root: Path = typer.Argument(Path("."), help="Project root containing psproj.json"),
):
    """Run the project's test scripts against its source modules."""
    config = _tool_config(ctx)
    try:
        project = load_project(project_root, staging_dir_name=config.staging_dir_name)
        report = run_tests(
            project,
            SessionRegistry(),
            PwshScriptHost(config.pwsh_executable),
            staging_dir_name=config.staging_dir_name,
        )
    except TestFailureError as exc:
        if exc.output:
            console.print(exc.output, markup=False, highlight=False)
        _abort(exc)
    except PsBuildError as exc:
        _abort(exc)

    for result in report.results:
        console.print(f"[green]✓[/green] {result.script.name}")
    console.print(f"{report.passed}/{len(report.results)} test scripts passed")


@app.command()
def info(
    ctx: typer.Context,
    project_root: Path = typer.Argument(Path("."), help="Project root containing psproj.json"),
    json_output: bool = typer.Option(False, "--json", help="JSON output"),
):
    """Show the loaded project properties."""
    config = _tool_config(ctx)
    try:
        project = load_project(project_root, staging_dir_name=config.staging_dir_name)
    except PsBuildError as exc:
        _abort(exc)

    data = {
        "projectName": project.project_name,
        "uniqueId": project.unique_id,
        "version": project.version,
        "rootModule": project.root_module,
        "authors": project.authors,
        "companyName": project.company_name,
        "description": project.description,
        "projectRoot": str(project.project_root),
        "src": str(project.src_path),
        "dist": str(project.dist_path),
        "tests": str(project.tests_path),
        "modules": sorted(project.module_names),
        "dependencies": list(project.dependencies),
    }

    if json_output:
        typer.echo(json.dumps(data, indent=2))
        return

    table = Table(title=project.project_name or project.project_root.name, show_header=False)
    table.add_column("Key", style="bold")
    table.add_column("Value")
    for key, value in data.items():
        if isinstance(value, list):
            value = ", ".join(value)
        table.add_row(key, value or "")
    console.print(table)


@app.command()
def clean(
    ctx: typer.Context,
    project_root: Path = typer.Argument(Path("."), help="Project root containing psproj.json"),
):
    """Remove the distribution and staging directories."""
    config = _tool_config(ctx)
    try:
        project = load_project(project_root, staging_dir_name=config.staging_dir_name)
        removed = clean_project(project, config.staging_dir_name)
    except PsBuildError as exc:
        _abort(exc)

    if not removed:
        console.print("Nothing to clean.")
    for path in removed:
        console.print(f"Removed {path}", soft_wrap=True)


if __name__ == "__main__":
    app()
