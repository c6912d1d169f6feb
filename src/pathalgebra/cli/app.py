"""CLI application entry point for pathalgebra.

This module provides the main CLI interface using Typer. Operands are SVG
path data strings, or @FILE to read path data from a file. Results are
written to stdout as SVG path data.
"""

import time
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from pathalgebra import __version__
from pathalgebra.cli.output import (
    SYM_DOT,
    console,
    print_edge_summary,
    print_error,
    print_glyph_info,
    print_header,
    print_path_data,
    print_step,
    print_success,
)
from pathalgebra.config import (
    ArithmeticConfig,
    FillRule,
    GeometryConfig,
    LoggingConfig,
    PathAlgebraSettings,
)
from pathalgebra.core import (
    collide,
    edge_kinds_summary,
    path_add,
    path_cut,
    path_intersect,
    path_remove_interior_points,
    path_remove_overlapped_points,
    path_sub,
    set_edge_kinds_by_ray_casting,
)
from pathalgebra.core.arithmetic import union_predicate
from pathalgebra.domain import BezierPath, GraphPath, PathLabel
from pathalgebra.exceptions import FontLoadError, PathAlgebraError, PathFormatError
from pathalgebra.io import FontReader, format_svg_path, parse_svg_path
from pathalgebra.utils import OperationLogger, configure_logging

# Create the Typer app
app = typer.Typer(
    name="pathalgebra",
    help="Boolean operations (union, subtract, intersect, cut) on SVG path data.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]pathalgebra[/bold blue] v{__version__}")
        raise typer.Exit()


PathArgument = Annotated[
    str,
    typer.Argument(
        help="SVG path data, or @FILE to read it from a file",
        show_default=False,
    ),
]

AccuracyOption = Annotated[
    float,
    typer.Option(
        "--accuracy",
        "-a",
        help="Distance under which points are treated as the same",
    ),
]

FillRuleOption = Annotated[
    FillRule,
    typer.Option(
        "--fill-rule",
        "-f",
        help="Rule deciding which crossing counts are filled",
        case_sensitive=False,
    ),
]

StrictOption = Annotated[
    bool,
    typer.Option(
        "--strict",
        help="Fail instead of repairing inconsistent graphs",
    ),
]

LogFileOption = Annotated[
    Path | None,
    typer.Option(
        "--log-file",
        help="Write detailed logs to file",
    ),
]

LogLevelOption = Annotated[
    str,
    typer.Option(
        "--log-level",
        help="Logging level (DEBUG|INFO|WARNING|ERROR)",
    ),
]

QuietOption = Annotated[
    bool,
    typer.Option(
        "--quiet",
        "-q",
        help="Only write the resulting path data",
    ),
]


@app.callback()
def main_options(
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Boolean operations on closed cubic Bezier paths."""


def _read_paths(argument: str) -> list[BezierPath]:
    """Parse an operand given as path data or as @FILE."""
    if argument.startswith("@"):
        path = Path(argument[1:])
        try:
            data = path.read_text(encoding="utf-8")
        except OSError as e:
            raise PathFormatError(str(path), str(e)) from e
        return parse_svg_path(data.strip(), source=str(path))
    return parse_svg_path(argument)


def _geometry(accuracy: float) -> GeometryConfig:
    """Tolerances for an --accuracy value, ending the command if it is out of range."""
    try:
        return GeometryConfig(accuracy=accuracy)
    except ValidationError:
        print_error(f"Invalid accuracy {accuracy}: must be greater than 0 and at most 10")
        raise typer.Exit(code=1) from None


def _settings(
    accuracy: float,
    fill_rule: FillRule,
    strict: bool,
    log_file: Path | None,
    log_level: str,
    quiet: bool,
) -> PathAlgebraSettings:
    return PathAlgebraSettings(
        geometry=_geometry(accuracy),
        arithmetic=ArithmeticConfig(fill_rule=fill_rule, strict=strict),
        logging=LoggingConfig(
            log_file=log_file,
            log_level=log_level if not quiet else "ERROR",
        ),
    )


def _run(
    name: str,
    operands: list[str],
    operation: Callable[[list[list[BezierPath]], PathAlgebraSettings], list[list[BezierPath]]],
    settings: PathAlgebraSettings,
    quiet: bool,
    labels: tuple[str, ...] = (),
) -> None:
    """Parse operands, run an operation and print its results.

    Errors from the library are reported on the console and end the
    command with exit code 1.
    """
    logger = configure_logging(
        log_file=settings.logging.log_file,
        console_level=settings.logging.log_level,
        file_level=settings.logging.file_log_level,
        quiet=quiet,
    )
    op_logger = OperationLogger(logger)

    if not quiet:
        print_header(__version__)
        print_step(f"Running {name}")

    try:
        inputs = [_read_paths(operand) for operand in operands]
        input_count = sum(len(paths) for paths in inputs)
        op_logger.log_operation_start(name, input_count)

        start = time.perf_counter()
        results = operation(inputs, settings)
        duration = time.perf_counter() - start
    except PathAlgebraError as e:
        op_logger.log_operation_error(name, e)
        print_error(str(e))
        raise typer.Exit(code=1) from None

    output_count = sum(len(paths) for paths in results)
    op_logger.log_operation_complete(name, output_count, duration * 1000.0)

    for idx, paths in enumerate(results):
        print_path_data(format_svg_path(paths), labels[idx] if idx < len(labels) else None)

    if not quiet:
        print_success(name, input_count, output_count, duration)


@app.command()
def union(
    path_a: PathArgument,
    path_b: PathArgument,
    accuracy: AccuracyOption = 0.01,
    fill_rule: FillRuleOption = FillRule.EVEN_ODD,
    strict: StrictOption = False,
    log_file: LogFileOption = None,
    log_level: LogLevelOption = "WARNING",
    quiet: QuietOption = False,
) -> None:
    """Print the union of two shapes.

    Example:
        pathalgebra union "M0 0H10V10H0Z" "M5 5H15V15H5Z"
    """
    settings = _settings(accuracy, fill_rule, strict, log_file, log_level, quiet)
    _run(
        "union",
        [path_a, path_b],
        lambda inputs, s: [path_add(inputs[0], inputs[1], s.geometry.accuracy, s.arithmetic, s.geometry)],
        settings,
        quiet,
    )


@app.command()
def subtract(
    path_a: PathArgument,
    path_b: PathArgument,
    accuracy: AccuracyOption = 0.01,
    fill_rule: FillRuleOption = FillRule.EVEN_ODD,
    strict: StrictOption = False,
    log_file: LogFileOption = None,
    log_level: LogLevelOption = "WARNING",
    quiet: QuietOption = False,
) -> None:
    """Print the first shape with the second removed from it."""
    settings = _settings(accuracy, fill_rule, strict, log_file, log_level, quiet)
    _run(
        "subtract",
        [path_a, path_b],
        lambda inputs, s: [path_sub(inputs[0], inputs[1], s.geometry.accuracy, s.arithmetic, s.geometry)],
        settings,
        quiet,
    )


@app.command()
def intersect(
    path_a: PathArgument,
    path_b: PathArgument,
    accuracy: AccuracyOption = 0.01,
    fill_rule: FillRuleOption = FillRule.EVEN_ODD,
    strict: StrictOption = False,
    log_file: LogFileOption = None,
    log_level: LogLevelOption = "WARNING",
    quiet: QuietOption = False,
) -> None:
    """Print the area common to two shapes."""
    settings = _settings(accuracy, fill_rule, strict, log_file, log_level, quiet)
    _run(
        "intersect",
        [path_a, path_b],
        lambda inputs, s: [
            path_intersect(inputs[0], inputs[1], s.geometry.accuracy, s.arithmetic, s.geometry)
        ],
        settings,
        quiet,
    )


@app.command()
def cut(
    path_a: PathArgument,
    path_b: PathArgument,
    accuracy: AccuracyOption = 0.01,
    fill_rule: FillRuleOption = FillRule.EVEN_ODD,
    strict: StrictOption = False,
    log_file: LogFileOption = None,
    log_level: LogLevelOption = "WARNING",
    quiet: QuietOption = False,
) -> None:
    """Print the parts of the first shape inside and outside the second.

    Two lines are written: "interior: ..." and "exterior: ...".
    """
    settings = _settings(accuracy, fill_rule, strict, log_file, log_level, quiet)

    def run_cut(inputs: list[list[BezierPath]], s: PathAlgebraSettings) -> list[list[BezierPath]]:
        result = path_cut(inputs[0], inputs[1], s.geometry.accuracy, s.arithmetic, s.geometry)
        return [result.interior_path, result.exterior_path]

    _run("cut", [path_a, path_b], run_cut, settings, quiet, labels=("interior", "exterior"))


@app.command("remove-overlaps")
def remove_overlaps(
    path: PathArgument,
    accuracy: AccuracyOption = 0.01,
    fill_rule: FillRuleOption = FillRule.NON_ZERO,
    strict: StrictOption = False,
    log_file: LogFileOption = None,
    log_level: LogLevelOption = "WARNING",
    quiet: QuietOption = False,
) -> None:
    """Print the outline of a shape with its self-overlaps removed.

    With the even-odd fill rule, areas covered twice become holes.
    """
    settings = _settings(accuracy, fill_rule, strict, log_file, log_level, quiet)
    operation = (
        path_remove_overlapped_points
        if fill_rule == FillRule.EVEN_ODD
        else path_remove_interior_points
    )
    _run(
        "remove-overlaps",
        [path],
        lambda inputs, s: [operation(inputs[0], s.geometry.accuracy, s.arithmetic, s.geometry)],
        settings,
        quiet,
    )


@app.command()
def inspect(
    path_a: PathArgument,
    path_b: PathArgument,
    accuracy: AccuracyOption = 0.01,
    log_file: LogFileOption = None,
    log_level: LogLevelOption = "WARNING",
) -> None:
    """Show how the edges of two colliding shapes are classified for a union."""
    geometry = _geometry(accuracy)
    op_logger = OperationLogger(configure_logging(log_file=log_file, console_level=log_level))

    try:
        first = GraphPath.from_merged_paths((p, PathLabel.for_path(0, p)) for p in _read_paths(path_a))
        second = GraphPath.from_merged_paths((p, PathLabel.for_path(1, p)) for p in _read_paths(path_b))
        graph = collide(first, second, geometry.accuracy, geometry)
        set_edge_kinds_by_ray_casting(graph, union_predicate())
    except PathAlgebraError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    console.print(
        f"  {graph.num_points()} points {SYM_DOT} {graph.num_edges()} edges "
        f"{SYM_DOT} {len(graph.orphaned_points())} orphaned points"
    )
    counts = edge_kinds_summary(graph)
    op_logger.log_graph_summary(
        "inspect", graph.num_points(), graph.num_edges(), counts["EXTERIOR"]
    )
    print_edge_summary(counts)


@app.command()
def glyph(
    font: Annotated[
        Path,
        typer.Argument(
            help="Path to a TTF/OTF font file",
            show_default=False,
        ),
    ],
    glyph_name: Annotated[
        str,
        typer.Argument(
            help="Name of the glyph to process",
            show_default=False,
        ),
    ],
    accuracy: AccuracyOption = 0.01,
    strict: StrictOption = False,
    log_file: LogFileOption = None,
    log_level: LogLevelOption = "WARNING",
    quiet: QuietOption = False,
) -> None:
    """Print a font glyph's outline with its overlapping contours merged.

    Example:
        pathalgebra glyph Roboto-Regular.ttf A
    """
    geometry = _geometry(accuracy)
    configure_logging(log_file=log_file, console_level=log_level, quiet=quiet)

    try:
        with FontReader(font) as reader:
            font_type = reader.format
            paths = reader.glyph_paths(glyph_name)
    except FontLoadError as e:
        print_error(f"Could not load font: {e.reason}")
        raise typer.Exit(code=1) from None
    except PathAlgebraError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    if not quiet:
        print_header(__version__)
        print_glyph_info(str(font), font_type, glyph_name, len(paths))

    try:
        start = time.perf_counter()
        # Contours are classified by their own winding so that counters stay holes
        config = ArithmeticConfig(strict=strict, normalize_direction=False)
        result = path_remove_interior_points(paths, geometry.accuracy, config, geometry)
        duration = time.perf_counter() - start
    except PathAlgebraError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    print_path_data(format_svg_path(result))
    if not quiet:
        print_success("glyph", len(paths), len(result), duration)


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
