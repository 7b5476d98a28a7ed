"""Viewbench CLI."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from viewbench import __version__
from viewbench._constants import DEFAULT_OUTPUT_DIR
from viewbench.config import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigValidationError,
    ViewbenchConfig,
    generate_example_config_yaml,
    load_config,
)
from viewbench.db import Database, DatabaseConnectionError, DatabaseError

# Default config file name for auto-discovery
DEFAULT_CONFIG = "viewbench.yaml"

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="viewbench",
    help="Benchmark raw joins, views and materialized views on PostgreSQL",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    epilog="[dim]Workflow: init -> up -> run -> report -> down[/dim]",
)

console = Console()


# =============================================================================
# Helper Functions
# =============================================================================


def resolve_config_path(
    config_file: Path | None,
    file_option: Path | None = None,
) -> Path:
    """Resolve config file path, using ./viewbench.yaml as default.

    Supports both positional argument and --file/-f option.
    If both are provided, --file takes precedence.
    """
    path = file_option or config_file
    if path is not None:
        return path

    default = Path(DEFAULT_CONFIG)
    if default.exists():
        return default

    console.print(f"[red]ERROR[/red] No config file specified and ./{DEFAULT_CONFIG} not found")
    console.print("[blue]INFO[/blue] Create one with: viewbench init")
    raise typer.Exit(1)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]OK[/green] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]ERROR[/red] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]WARN[/yellow] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]...[/blue] {message}")


def _load(config_file: Path | None, file_option: Path | None) -> ViewbenchConfig:
    """Resolve and load the config, exiting with code 1 on any error."""
    config_file = resolve_config_path(config_file, file_option)
    try:
        return load_config(config_file)
    except ConfigFileNotFoundError as e:
        print_error(f"File not found: {e}")
        raise typer.Exit(1)  # noqa: B904
    except ConfigValidationError as e:
        print_error("Config validation failed:")
        for err in e.errors:
            loc = ".".join(str(x) for x in err["loc"])
            console.print(f"  [red]*[/red] {loc}: {err['msg']}")
        raise typer.Exit(1)  # noqa: B904
    except ConfigError as e:
        print_error(f"Config error: {e}")
        raise typer.Exit(1)  # noqa: B904


def _metrics_dir(config_file: Path | None, metrics_dir: Path | None) -> Path:
    """Where stored runs live: --metrics, else the config's output_dir, else the default."""
    if metrics_dir is not None:
        return metrics_dir
    if config_file is not None or Path(DEFAULT_CONFIG).exists():
        cfg = _load(config_file, None)
        return Path(cfg.reports.output_dir) / "runs"
    return Path(DEFAULT_OUTPUT_DIR) / "runs"


@contextmanager
def _connect(cfg: ViewbenchConfig) -> Iterator[Database]:
    """Open the configured database; report failures and exit with code 1."""
    db = Database(cfg.database)
    try:
        db.connect()
    except DatabaseConnectionError as e:
        print_error(f"Cannot connect to {cfg.database.safe_conninfo()}: {e}")
        if cfg.container.enabled:
            print_info("Start the local container with: viewbench up")
        raise typer.Exit(1)  # noqa: B904

    try:
        yield db
    except DatabaseError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904
    finally:
        db.close()


def _print_comparison(bench: dict[str, Any], space: list[dict[str, Any]] | None = None) -> None:
    """Render BenchmarkResult.to_dict() output as a rich table."""
    from viewbench.benchmark import format_bytes

    sizes = {s["name"]: s for s in space or []}

    table = Table(show_header=True, header_style="bold")
    table.add_column("Variant", style="cyan")
    table.add_column("Median(ms)", justify="right")
    table.add_column("Mean(ms)", justify="right")
    table.add_column("Min(ms)", justify="right")
    table.add_column("Max(ms)", justify="right")
    table.add_column("Rows", justify="right")
    table.add_column("Size", justify="right")
    table.add_column("Status")

    for v in bench.get("variants", []):
        ok = v.get("success")
        obj = sizes.get(v.get("object_name") or "")
        table.add_row(
            v.get("display_name", v.get("name", "")),
            f"{v['median_seconds'] * 1000:.2f}" if ok else "-",
            f"{v['mean_seconds'] * 1000:.2f}" if ok else "-",
            f"{v['min_seconds'] * 1000:.2f}" if ok else "-",
            f"{v['max_seconds'] * 1000:.2f}" if ok else "-",
            f"{v.get('rows_returned', 0):,}",
            format_bytes(obj["total_bytes"]) if obj else "-",
            "[green]OK[/green]" if ok else f"[red]FAIL[/red] {v.get('error_message', '')[:60]}",
        )

    console.print(table)

    for e in bench.get("equivalence", []):
        if e.get("error"):
            print_warning(f"{e['variant']}: equivalence check failed: {e['error']}")
        elif e.get("equivalent"):
            print_success(f"{e['variant']} returns the same rows as {e['baseline']}")
        else:
            print_error(f"{e['variant']} differs from {e['baseline']} by {e['differing_rows']} rows")


def _print_assessment(assessment: dict[str, Any] | None) -> None:
    if not assessment:
        return
    ratio = assessment.get("view_vs_raw_ratio")
    if ratio is not None:
        msg = f"View / raw join median ratio: {ratio:.2f}"
        if assessment.get("view_matches_raw"):
            print_success(msg)
        else:
            print_warning(msg + f" (outside ±{assessment.get('tolerance', 0) * 100:.0f}%)")
    speedup = assessment.get("matview_speedup")
    if speedup is not None:
        msg = f"Materialized view speedup: {speedup:.1f}x"
        if assessment.get("matview_fastest"):
            print_success(msg)
        else:
            print_warning(msg + " (not the fastest variant)")


# =============================================================================
# Commands
# =============================================================================


@app.callback()
def callback(
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Show debug logging",
        ),
    ] = False,
) -> None:
    """Benchmark raw joins, views and materialized views on PostgreSQL."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"Viewbench version {__version__}")


@app.command()
def init(
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output file path for configuration",
        ),
    ] = Path(DEFAULT_CONFIG),
    name: Annotated[
        str,
        typer.Option(
            "--name",
            "-n",
            help="Benchmark name",
        ),
    ] = "my-viewbench",
    scale: Annotated[
        int,
        typer.Option(
            "--scale",
            "-s",
            help="Scale factor (1 = 10K students and 100K enrollments)",
        ),
    ] = 1,
    host: Annotated[
        str,
        typer.Option(
            "--host",
            help="PostgreSQL host",
        ),
    ] = "",
    port: Annotated[
        int | None,
        typer.Option(
            "--port",
            help="PostgreSQL port",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing file",
        ),
    ] = False,
) -> None:
    """Generate a starter configuration file.

    Creates a commented YAML configuration file with sensible defaults
    that you can customize for your environment.
    """
    if output.exists() and not force:
        print_error(f"File already exists: {output}")
        print_info("Use --force to overwrite")
        raise typer.Exit(1)

    config_content = generate_example_config_yaml()
    config_content = config_content.replace("name: my-viewbench", f"name: {name}")
    config_content = re.sub(r"(?m)^  scale:\s*\d+", f"  scale: {scale}", config_content)
    if host:
        config_content = config_content.replace("host: localhost", f"host: {host}", 1)
    if port is not None:
        config_content = config_content.replace("  port: 5432", f"  port: {port}", 1)

    output.write_text(config_content)
    print_success(f"Created configuration file: {output}")
    print_info(f"Scale: {scale} ({scale * 10_000:,} students, {scale * 100_000:,} enrollments)")
    print_info("Then run: viewbench run")


@app.command()
def up(
    config_file: Annotated[
        Path | None,
        typer.Argument(help="Path to configuration YAML file (default: ./viewbench.yaml)"),
    ] = None,
    file_option: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Path to configuration YAML file"),
    ] = None,
) -> None:
    """Start the local PostgreSQL container and wait until it accepts connections."""
    from viewbench.container import ContainerError, ContainerManager
    from viewbench.db import wait_for_database

    cfg = _load(config_file, file_option)
    manager = ContainerManager(cfg.container)

    try:
        manager.start()
    except ContainerError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904
    print_success(f"Container {cfg.container.name} running ({cfg.container.image})")

    with console.status("Waiting for PostgreSQL..."):
        result = wait_for_database(cfg.database, timeout_seconds=cfg.container.ready_timeout)

    if not result.ready:
        print_error(result.message)
        raise typer.Exit(1)
    print_success(f"{result.message} ({result.elapsed_seconds:.1f}s)")


@app.command()
def down(
    config_file: Annotated[
        Path | None,
        typer.Argument(help="Path to configuration YAML file (default: ./viewbench.yaml)"),
    ] = None,
    file_option: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Path to configuration YAML file"),
    ] = None,
    remove: Annotated[
        bool,
        typer.Option("--remove", "--rm", help="Remove the container after stopping it"),
    ] = False,
) -> None:
    """Stop (and optionally remove) the local PostgreSQL container."""
    from viewbench.container import ContainerError, ContainerManager

    cfg = _load(config_file, file_option)
    manager = ContainerManager(cfg.container)

    try:
        if remove:
            manager.remove()
            print_success(f"Removed container {cfg.container.name}")
            return
        status = manager.stop()
    except ContainerError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    if not status.exists:
        print_warning(f"Container {cfg.container.name} does not exist")
    else:
        print_success(f"Stopped container {cfg.container.name}")


@app.command()
def provision(
    config_file: Annotated[
        Path | None,
        typer.Argument(help="Path to configuration YAML file (default: ./viewbench.yaml)"),
    ] = None,
    file_option: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Path to configuration YAML file"),
    ] = None,
    drop: Annotated[
        bool,
        typer.Option("--drop", help="Drop existing tables and views first"),
    ] = False,
) -> None:
    """Create the student, course, class and enrollment tables."""
    from viewbench.schema import SchemaProvisioner

    cfg = _load(config_file, file_option)
    with _connect(cfg) as db:
        result = SchemaProvisioner(db).create(drop_existing=drop)

    if result.dropped:
        print_info(f"Dropped: {', '.join(result.dropped)}")
    print_success(f"Created tables: {', '.join(result.created)} ({result.elapsed_seconds:.2f}s)")


@app.command()
def generate(
    config_file: Annotated[
        Path | None,
        typer.Argument(help="Path to configuration YAML file (default: ./viewbench.yaml)"),
    ] = None,
    file_option: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Path to configuration YAML file"),
    ] = None,
    scale: Annotated[
        int | None,
        typer.Option("--scale", "-s", help="Scale factor (overrides config)"),
    ] = None,
) -> None:
    """Fill the tables with synthetic rows and verify the counts."""
    from viewbench.config import get_dimensions
    from viewbench.datagen import DataGenerator, DatagenError

    cfg = _load(config_file, file_option)
    try:
        if scale is not None:
            dims = get_dimensions(scale, cfg.datagen.overrides())
        else:
            dims = cfg.get_scale_dimensions()
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(1)  # noqa: B904

    console.print(
        Panel(
            f"Viewbench Data Generation\n"
            f"Scale: {dims.scale}\n"
            + "\n".join(f"  {t:<11} {n:>12,}" for t, n in dims.row_counts().items()),
            expand=False,
        )
    )

    with _connect(cfg) as db:
        generator = DataGenerator(db, seed=cfg.datagen.seed, batch_size=cfg.datagen.batch_size)
        try:
            with console.status("Generating rows..."):
                result = generator.generate(dims)
            generator.verify_counts(dims)
        except DatagenError as e:
            print_error(str(e))
            raise typer.Exit(1)  # noqa: B904

    for table, seconds in result.per_table_seconds.items():
        console.print(f"  {table:<11} {result.row_counts[table]:>12,} rows  {seconds:>7.2f}s")
    print_success(f"Generated {result.total_rows:,} rows in {result.elapsed_seconds:.1f}s")


@app.command()
def views(
    config_file: Annotated[
        Path | None,
        typer.Argument(help="Path to configuration YAML file (default: ./viewbench.yaml)"),
    ] = None,
    file_option: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Path to configuration YAML file"),
    ] = None,
    no_data: Annotated[
        bool,
        typer.Option("--no-data", help="Create the materialized view WITH NO DATA"),
    ] = False,
    drop: Annotated[
        bool,
        typer.Option("--drop", help="Drop the view and materialized view instead"),
    ] = False,
) -> None:
    """Create (or drop) the view and the materialized view."""
    from viewbench.benchmark import QueryVariantRegistry, SpaceInspector

    cfg = _load(config_file, file_option)
    registry = QueryVariantRegistry()

    with _connect(cfg) as db:
        if drop:
            registry.drop_objects(db)
            print_success("Dropped view and materialized view")
            return

        populate = cfg.benchmark.populate_materialized_view and not no_data
        creation = registry.create_objects(db, populate=populate)
        sizes = SpaceInspector(db).list_views()

    print_success(
        f"Created view ({creation.view_seconds:.2f}s) and materialized view "
        f"{'WITH DATA' if creation.populated else 'WITH NO DATA'} "
        f"({creation.materialized_view_seconds:.2f}s)"
    )
    for s in sizes:
        console.print(f"  {s.name:<24} {s.kind:<18} {s.persistence:<10} {s.pretty_size:>10}")
    if not creation.populated:
        print_info("Populate it with: viewbench refresh")


@app.command()
def refresh(
    config_file: Annotated[
        Path | None,
        typer.Argument(help="Path to configuration YAML file (default: ./viewbench.yaml)"),
    ] = None,
    file_option: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Path to configuration YAML file"),
    ] = None,
) -> None:
    """Refresh the materialized view."""
    from viewbench._constants import MATVIEW_NAME
    from viewbench.benchmark import QueryVariantRegistry, SpaceInspector

    cfg = _load(config_file, file_option)
    registry = QueryVariantRegistry()

    with _connect(cfg) as db:
        if registry.is_materialized_view_populated(db) is None:
            print_error(f"{MATVIEW_NAME} does not exist")
            print_info("Create it with: viewbench views")
            raise typer.Exit(1)
        elapsed = registry.refresh_materialized_view(db)
        size = SpaceInspector(db).size_of(MATVIEW_NAME)

    print_success(
        f"Refreshed {MATVIEW_NAME} in {elapsed:.2f}s"
        + (f" ({size.pretty_size})" if size else "")
    )


@app.command()
def benchmark(
    config_file: Annotated[
        Path | None,
        typer.Argument(help="Path to configuration YAML file (default: ./viewbench.yaml)"),
    ] = None,
    file_option: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Path to configuration YAML file"),
    ] = None,
    iterations: Annotated[
        int | None,
        typer.Option("--iterations", "-n", help="Timed runs per variant (overrides config)"),
    ] = None,
    warmup: Annotated[
        int | None,
        typer.Option("--warmup", "-w", help="Discarded warm-up runs (overrides config)"),
    ] = None,
    cold: Annotated[
        bool,
        typer.Option("--cold", help="Reset the session (DISCARD ALL) before each timed run"),
    ] = False,
    variant: Annotated[
        list[str] | None,
        typer.Option(
            "--variant",
            help="Variant to run (repeatable): raw_join, view, materialized_view",
        ),
    ] = None,
) -> None:
    """Time the raw join, the view and the materialized view.

    The view and materialized view must already exist (viewbench views).

    Examples:

        viewbench benchmark --iterations 10

        viewbench benchmark --cold --variant view --variant raw_join
    """
    from viewbench.benchmark import BenchmarkRunner, SpaceInspector, assess_latency_ordering

    cfg = _load(config_file, file_option)
    bench_cfg = cfg.benchmark

    console.print(
        Panel(
            f"Viewbench Query Benchmark\n"
            f"{'=' * 25}\n"
            f"Scale: {cfg.datagen.scale}\n"
            f"Iterations: {iterations if iterations is not None else bench_cfg.iterations}"
            f" (warm-up {warmup if warmup is not None else bench_cfg.warmup})\n"
            f"Cache: {'cold' if cold else bench_cfg.cache.value}",
            expand=False,
        )
    )

    with _connect(cfg) as db:
        try:
            result = BenchmarkRunner(cfg, db).run(
                iterations=iterations,
                warmup=warmup,
                cache="cold" if cold else None,
                variants=variant or None,
            )
        except ValueError as e:
            print_error(str(e))
            raise typer.Exit(1)  # noqa: B904
        space = [s.to_dict() for s in SpaceInspector(db).inspect()]

    _print_comparison(result.to_dict(), space)
    _print_assessment(
        assess_latency_ordering(result, tolerance=cfg.reports.latency_tolerance).to_dict()
    )
    console.print(f"\n  Total: {result.total_seconds:.2f}s")

    if not result.success:
        raise typer.Exit(1)


@app.command()
def space(
    config_file: Annotated[
        Path | None,
        typer.Argument(help="Path to configuration YAML file (default: ./viewbench.yaml)"),
    ] = None,
    file_option: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Path to configuration YAML file"),
    ] = None,
) -> None:
    """Show the on-disk size of the tables, the view and the materialized view."""
    from viewbench.benchmark import SpaceInspector, format_bytes

    cfg = _load(config_file, file_option)
    with _connect(cfg) as db:
        sizes = SpaceInspector(db).inspect()

    if not sizes:
        print_warning("No benchmark objects found")
        print_info("Create them with: viewbench provision && viewbench views")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Object", style="cyan")
    table.add_column("Type")
    table.add_column("Persistence")
    table.add_column("Bytes", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Indexes", justify="right")

    for s in sizes:
        table.add_row(
            s.name,
            s.kind,
            s.persistence,
            f"{s.relation_bytes:,}",
            s.pretty_size,
            format_bytes(s.index_bytes),
        )
    console.print(table)


@app.command()
def run(
    config_file: Annotated[
        Path | None,
        typer.Argument(help="Path to configuration YAML file (default: ./viewbench.yaml)"),
    ] = None,
    file_option: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Path to configuration YAML file"),
    ] = None,
    skip_generate: Annotated[
        bool,
        typer.Option("--skip-generate", help="Reuse the rows already in the database"),
    ] = False,
    iterations: Annotated[
        int | None,
        typer.Option("--iterations", "-n", help="Timed runs per variant (overrides config)"),
    ] = None,
    cold: Annotated[
        bool,
        typer.Option("--cold", help="Reset the session (DISCARD ALL) before each timed run"),
    ] = False,
) -> None:
    """Run the full benchmark: provision, generate, views, benchmark, report.

    Starts the local container first when container.enabled is true.
    Metrics and report.md are written to <output_dir>/runs/run-<id>/.
    """
    from viewbench.datagen import DatagenError
    from viewbench.pipeline import BenchmarkPipeline

    cfg = _load(config_file, file_option)

    if cfg.container.enabled:
        from viewbench.container import ContainerError, ContainerManager
        from viewbench.db import wait_for_database

        try:
            ContainerManager(cfg.container).start()
        except ContainerError as e:
            print_error(str(e))
            raise typer.Exit(1)  # noqa: B904
        with console.status("Waiting for PostgreSQL..."):
            ready = wait_for_database(cfg.database, timeout_seconds=cfg.container.ready_timeout)
        if not ready.ready:
            print_error(ready.message)
            raise typer.Exit(1)

    dims = cfg.get_scale_dimensions()
    console.print(
        Panel(
            f"[bold]Viewbench run:[/bold] {cfg.name}\n"
            f"Database: {cfg.database.safe_conninfo()}\n"
            f"Scale: {dims.scale} ({dims.total_rows:,} rows)",
            expand=False,
        )
    )

    with _connect(cfg) as db:
        try:
            result = BenchmarkPipeline(cfg, db).run(
                skip_generate=skip_generate,
                iterations=iterations,
                cache="cold" if cold else None,
            )
        except (DatabaseError, DatagenError, ValueError) as e:
            print_error(f"Run failed: {e}")
            print_info("Partial metrics saved; see 'viewbench report --list'")
            raise typer.Exit(1)  # noqa: B904

    metrics = result.metrics
    for stage in result.stages:
        status = "[green]OK[/green]" if stage.success else "[red]FAIL[/red]"
        console.print(f"  {stage.name:<10} {stage.elapsed_seconds:>8.2f}s  {status}")
    console.print()

    if metrics.benchmark:
        _print_comparison(metrics.benchmark, metrics.space)
    _print_assessment(metrics.assessment)

    console.print(
        Panel(
            f"Run: {metrics.run_id}\nReport: {result.report_path}",
            title="Run Complete" if metrics.success else "Run Finished With Failures",
            expand=False,
        )
    )
    if not metrics.success:
        raise typer.Exit(1)


@app.command()
def report(
    config_file: Annotated[
        Path | None,
        typer.Argument(help="Configuration YAML whose reports.output_dir holds the runs"),
    ] = None,
    metrics_dir: Annotated[
        Path | None,
        typer.Option(
            "--metrics",
            "-m",
            help="Directory containing run subdirectories (overrides the config)",
        ),
    ] = None,
    run_id: Annotated[
        str | None,
        typer.Option(
            "--run",
            "-r",
            help="Specific run ID to report on (default: latest)",
        ),
    ] = None,
    list_runs: Annotated[
        bool,
        typer.Option(
            "--list",
            "-l",
            help="List available runs instead of generating report",
        ),
    ] = False,
) -> None:
    """Generate benchmark report from collected metrics.

    Creates report.md inside the per-run directory.
    """
    from viewbench.metrics import MetricsStorage
    from viewbench.reports import ReportGenerator

    metrics_dir = _metrics_dir(config_file, metrics_dir)
    storage = MetricsStorage(metrics_dir)

    if list_runs:
        runs = storage.list_runs()
        if not runs:
            print_warning(f"No runs found in {metrics_dir}")
            return

        console.print(Panel(f"Available runs in [bold]{metrics_dir}[/bold]", expand=False))

        table = Table()
        table.add_column("Run ID", style="cyan")
        table.add_column("Name")
        table.add_column("Date")
        table.add_column("Scale", justify="right")
        table.add_column("Status")
        table.add_column("Duration")

        for r in runs:
            status = "[green]Passed[/green]" if r.get("success") else "[red]Failed[/red]"
            elapsed = f"{r.get('total_elapsed_seconds') or 0:.1f}s"
            date = r.get("start_time", "")[:10] if r.get("start_time") else ""
            table.add_row(
                r.get("run_id", ""),
                r.get("deployment_name", ""),
                date,
                str(r.get("scale", "")),
                status,
                elapsed,
            )

        console.print(table)
        return

    try:
        generator = ReportGenerator(metrics_dir)
        report_path = generator.generate_report(run_id)

        console.print(
            Panel(
                f"[green]Report generated successfully![/green]\n\nOutput: {report_path}",
                title="Report Generated",
                expand=False,
            )
        )

    except ValueError as e:
        print_error(str(e))
        print_info("Use 'viewbench report --list' to see available runs")
        raise typer.Exit(1)  # noqa: B904


@app.command()
def results(
    config_file: Annotated[
        Path | None,
        typer.Argument(help="Configuration YAML whose reports.output_dir holds the runs"),
    ] = None,
    metrics_dir: Annotated[
        Path | None,
        typer.Option(
            "--metrics",
            "-m",
            help="Directory containing run subdirectories (overrides the config)",
        ),
    ] = None,
    run_id: Annotated[
        str | None,
        typer.Option(
            "--run",
            "-r",
            help="Specific run ID (default: latest)",
        ),
    ] = None,
    output_format: Annotated[
        str,
        typer.Option(
            "--format",
            "-f",
            help="Output format: table, json",
        ),
    ] = "table",
) -> None:
    """Display the latency comparison of a stored run."""
    import json as _json

    from viewbench.metrics import MetricsStorage

    storage = MetricsStorage(_metrics_dir(config_file, metrics_dir))

    if run_id:
        metrics = storage.load_run(run_id)
    else:
        metrics = storage.get_latest_run()

    if metrics is None:
        print_error("No run found" + (f" with ID {run_id}" if run_id else ""))
        print_info("Use 'viewbench report --list' to see available runs")
        raise typer.Exit(1)

    if metrics.benchmark is None:
        print_warning("This run does not have benchmark data.")
        raise typer.Exit(1)

    if output_format == "json":
        console.print(_json.dumps(metrics.to_dict(), indent=2))
        return

    console.print()
    console.print(
        Panel(
            f"[bold]Benchmark:[/bold] {metrics.deployment_name} (run {metrics.run_id})\n"
            f"Scale: {metrics.scale} | "
            f"Cache: {metrics.benchmark.get('cache')} | "
            f"Iterations: {metrics.benchmark.get('iterations')}",
            expand=False,
        )
    )
    _print_comparison(metrics.benchmark, metrics.space)
    _print_assessment(metrics.assessment)
    console.print()


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
