"""Command-line interface for selectrunner."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from selectrunner import __version__
from selectrunner.config import SelectRunnerConfig, create_example_config, get_default_config
from selectrunner.errors import SuiteLoadError
from selectrunner.framework.core import RunnerCore
from selectrunner.framework.description import Description
from selectrunner.framework.notification import Failure, Result, RunListener
from selectrunner.loader import XmlTestsLoader
from selectrunner.runner import XmlSuite, XmlTestsRunner
from selectrunner.scheduler import ThreadPoolScheduler, create_scheduler


console = Console()


def print_banner() -> None:
    """Print the selectrunner banner."""
    console.print(
        Panel.fit(
            "[bold blue]selectrunner[/bold blue] - XML suite test runner",
            subtitle=f"v{__version__}",
        )
    )


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


class ConsoleListener(RunListener):
    """Prints one line per test event."""

    def __init__(self, out: Console):
        self.out = out

    def test_started(self, description: Description) -> None:
        self.out.print(f"[dim]▶ {description.display_name}[/dim]")

    def test_failure(self, failure: Failure) -> None:
        self.out.print(f"[red]✗ {failure.test_header}[/red]: {failure.message}")

    def test_assumption_failure(self, failure: Failure) -> None:
        self.out.print(f"[yellow]~ {failure.test_header}[/yellow]: {failure.message}")

    def test_ignored(self, description: Description) -> None:
        self.out.print(f"[yellow]- {description.display_name} (ignored)[/yellow]")


@click.group()
@click.version_option(version=__version__, prog_name="selectrunner")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=False),
    help="Path to configuration file (default: selectrunner.json)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, config: Optional[str], verbose: bool) -> None:
    """selectrunner - run the tests chosen by an XML suite.

    Loads the suite, checks every class and method it names, and runs
    exactly those tests.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="selectrunner.json",
    help="Output path for configuration file",
)
@click.option("--force", "-f", is_flag=True, help="Overwrite existing configuration")
@click.pass_context
def init(ctx: click.Context, output: str, force: bool) -> None:
    """Initialize a new selectrunner configuration file."""
    print_banner()

    output_path = Path(output)
    if output_path.exists() and not force:
        console.print(
            f"[yellow]Configuration file already exists:[/yellow] {output_path}"
        )
        console.print("Use --force to overwrite")
        sys.exit(1)

    try:
        create_example_config(output_path)
        console.print(f"[green]Created configuration file:[/green] {output_path}")
        console.print("\nNext steps:")
        console.print("  1. Put suite XML files in the configured suites directory")
        console.print("  2. Set suite.tests_xml (or the testsXml variable)")
        console.print("  3. Run [bold]selectrunner run[/bold] to execute the suite")
    except OSError as e:
        console.print(f"[red]Error creating configuration:[/red] {e}")
        sys.exit(1)


def _load_config(
    ctx: click.Context, tests_xml: Optional[str], suites_dir: Optional[str]
) -> tuple[SelectRunnerConfig, Path]:
    config_path = ctx.obj.get("config_path")
    try:
        if config_path:
            config = SelectRunnerConfig.from_file(config_path)
        else:
            config = SelectRunnerConfig.find_and_load()
    except FileNotFoundError:
        if config_path:
            console.print(f"[red]Error:[/red] Configuration file not found: {config_path}")
            sys.exit(1)
        config = get_default_config()

    config = config.with_environment()
    updates = {}
    if tests_xml:
        updates["tests_xml"] = tests_xml
    if suites_dir:
        updates["suites_dir"] = suites_dir
    if updates:
        config = config.model_copy(update={"suite": config.suite.model_copy(update=updates)})

    if ctx.obj.get("verbose"):
        config = config.model_copy(update={"log_level": "DEBUG"})
    setup_logging(config.log_level)

    base_dir = Path(config_path).parent.resolve() if config_path else Path.cwd()
    return config, base_dir


def _load_plan(config: SelectRunnerConfig, base_dir: Path):
    # Suite classes are imported by name, relative to the project directory.
    if str(base_dir) not in sys.path:
        sys.path.insert(0, str(base_dir))

    suite = config.suite
    if not Path(suite.suites_dir).is_absolute():
        suite = suite.model_copy(update={"suites_dir": str(base_dir / suite.suites_dir)})

    try:
        return XmlTestsLoader(suite).get_tests()
    except SuiteLoadError as e:
        console.print(f"[red]Error loading suite ({type(e).__name__}):[/red] {e}")
        sys.exit(2)


suite_options = [
    click.option("--tests-xml", "-x", help="Suite file name (overrides config and testsXml)"),
    click.option("--suites-dir", "-d", help="Directory holding suite files"),
]


def with_suite_options(func):
    for option in reversed(suite_options):
        func = option(func)
    return func


@main.command()
@with_suite_options
@click.pass_context
def plan(ctx: click.Context, tests_xml: Optional[str], suites_dir: Optional[str]) -> None:
    """Show the classes and methods a suite selects."""
    print_banner()

    config, base_dir = _load_config(ctx, tests_xml, suites_dir)
    test_plan = _load_plan(config, base_dir)

    table = Table(title=f"Suite {config.suite.tests_xml}")
    table.add_column("Class", style="cyan")
    table.add_column("Tests", justify="right")
    table.add_column("Methods", style="dim")

    for clazz, methods in test_plan.items():
        table.add_row(
            f"{clazz.__module__}.{clazz.__qualname__}",
            str(len(methods)),
            ", ".join(methods) or "-",
        )

    console.print(table)


@main.command()
@with_suite_options
@click.option("--parallel/--sequential", default=None, help="Run each class's tests on a thread pool")
@click.option("--workers", "-w", type=int, help="Worker threads for --parallel")
@click.pass_context
def run(
    ctx: click.Context,
    tests_xml: Optional[str],
    suites_dir: Optional[str],
    parallel: Optional[bool],
    workers: Optional[int],
) -> None:
    """Run the tests selected by a suite."""
    print_banner()

    config, base_dir = _load_config(ctx, tests_xml, suites_dir)
    execution = config.execution
    if parallel is not None:
        execution = execution.model_copy(update={"scheduler": "parallel" if parallel else "synchronous"})
    if workers is not None:
        execution = execution.model_copy(update={"max_workers": workers})

    test_plan = _load_plan(config, base_dir)
    scheduler = create_scheduler(execution)
    runner = XmlTestsRunner(XmlSuite, plan=test_plan, scheduler=scheduler)

    core = RunnerCore()
    core.add_listener(ConsoleListener(console))
    try:
        result = core.run(runner)
    finally:
        if isinstance(scheduler, ThreadPoolScheduler):
            scheduler.shutdown()

    _display_results_summary(result)

    if not result.was_successful():
        sys.exit(1)


def _display_results_summary(result: Result) -> None:
    """Display a summary of test results."""
    console.print("\n" + "=" * 50)
    console.print("[bold]Test Results Summary[/bold]")
    console.print("=" * 50)

    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")

    table.add_row("Tests Run", str(result.run_count))
    table.add_row("Failures", f"[red]{result.failure_count}[/red]")
    table.add_row("Ignored", f"[yellow]{result.ignore_count}[/yellow]")
    table.add_row("Assumptions Failed", f"[yellow]{result.assumption_failure_count}[/yellow]")
    table.add_row("Time", f"{result.run_time_ms}ms")

    console.print(table)

    if result.failures:
        console.print("\n[red]Some tests failed![/red]")
        console.print("\nFailed tests:")
        for failure in result.failures[:10]:
            console.print(f"  [red]✗[/red] {failure.test_header}")
        if len(result.failures) > 10:
            console.print(f"  ... and {len(result.failures) - 10} more")
    else:
        console.print("\n[green]All tests passed![/green]")


if __name__ == "__main__":
    main()
