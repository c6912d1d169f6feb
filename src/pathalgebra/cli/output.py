"""Rich console output helpers for the CLI.

Status messages go to stderr so that the path data written to stdout can
be piped into other tools.
"""

from rich.console import Console
from rich.table import Table
from rich.text import Text

console = Console(stderr=True)
data_console = Console(soft_wrap=True, highlight=False)

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_DOT = "·"  # Separator/secondary info


def print_header(version: str) -> None:
    """Print application header.

    Args:
        version: Application version string
    """
    console.print(f"\n[bold]pathalgebra[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator.

    Args:
        message: Step description message
    """
    console.print(f"\n{SYM_STEP} {message}")


def print_path_data(data: str, label: str | None = None) -> None:
    """Write SVG path data to stdout.

    Args:
        data: Path data string
        label: Optional name printed before the data
    """
    if label is None:
        data_console.print(data, markup=False)
    else:
        data_console.print(f"{label}: {data}", markup=False)


def _format_time(seconds: float) -> str:
    """Format seconds into human-readable time string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


def print_success(operation: str, input_paths: int, output_paths: int, total_time_s: float) -> None:
    """Print success message with summary.

    Args:
        operation: Name of the operation that ran
        input_paths: Number of paths read
        output_paths: Number of paths written
        total_time_s: Total processing time in seconds
    """
    time_str = _format_time(total_time_s)
    console.print(f"\n[bold green]{SYM_OK} {operation}[/bold green] in {time_str}")
    console.print(f"  {input_paths} paths in {SYM_DOT} {output_paths} paths out")


def print_edge_summary(counts: dict[str, int]) -> None:
    """Print a table of edge counts per classification.

    Args:
        counts: Number of edges keyed by kind name
    """
    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Edge kind")
    table.add_column("Count", justify="right")
    for kind, count in counts.items():
        table.add_row(kind.lower(), str(count))
    console.print(table)


def print_glyph_info(font_path: str, font_type: str, glyph_name: str, contours: int) -> None:
    """Print information about the glyph being processed.

    Args:
        font_path: Path to the font file
        font_type: Font format type (e.g., "TrueType", "OpenType")
        glyph_name: Name of the glyph
        contours: Number of contours in the glyph
    """
    # Use Text to safely handle paths with special characters
    line = Text("  ")
    line.append(font_path)
    line.append(f" ({font_type})")
    console.print(line)
    console.print(f"  {glyph_name} {SYM_DOT} {contours} contours")


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")
