"""Rich logging configuration for the flow engine."""

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler
from rich.traceback import install as install_rich_traceback
from typing import Optional


def setup_rich_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    show_path: bool = True,
    show_time: bool = True,
    rich_tracebacks: bool = True,
    console: Optional[Console] = None,
    use_stderr: bool = False,
    file_level: str = "DEBUG",
    rotation: str = "10 MB",
    retention: str = "7 days",
    compression: str = "zip"
) -> Console:
    """Setup rich logging with loguru.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file for detailed logs
        show_path: Show file path in console logs
        show_time: Show timestamp in console logs
        rich_tracebacks: Enable rich tracebacks with syntax highlighting
        console: Optional Rich Console instance (creates new if None)
        use_stderr: Send console output to stderr (keeps stdout for results)
        file_level: Logging level for the file sink
        rotation: Log file rotation size
        retention: Log file retention period
        compression: Log file compression format

    Returns:
        Console instance used for logging
    """
    if console is None:
        console = Console(stderr=use_stderr)

    if rich_tracebacks:
        install_rich_traceback(
            show_locals=False,
            width=console.width,
            extra_lines=3,
            theme="monokai",
            word_wrap=True,
            console=console
        )

    # Remove default loguru handlers
    logger.remove()

    logger.add(
        RichHandler(
            console=console,
            rich_tracebacks=rich_tracebacks,
            markup=False,
            show_time=show_time,
            show_level=True,
            show_path=show_path
        ),
        format="{message}",
        level=level
    )

    if log_file:
        logger.add(
            log_file,
            rotation=rotation,
            retention=retention,
            compression=compression,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level=file_level
        )

    return console


def setup_logging_from_settings(settings, use_stderr: bool = False) -> Console:
    """Configure logging from a ``Settings`` instance."""
    return setup_rich_logging(
        level=settings.log_level,
        log_file=settings.log_file,
        show_path=settings.log_show_path,
        show_time=settings.log_show_time,
        rich_tracebacks=settings.log_rich_tracebacks,
        use_stderr=use_stderr,
        file_level=settings.log_file_level,
        rotation=settings.log_file_rotation,
        retention=settings.log_file_retention,
        compression=settings.log_file_compression
    )


def log_with_panel(
    message: str,
    title: str = "",
    console: Optional[Console] = None,
    border_style: str = "blue"
):
    """Print a message in a rich panel.

    Args:
        message: Message to display
        title: Panel title
        console: Console instance (creates new if None)
        border_style: Border color/style
    """
    from rich.panel import Panel

    if console is None:
        console = Console()

    console.print(Panel(message, title=title, border_style=border_style))


def log_run_result(result, labels: Optional[dict] = None, console: Optional[Console] = None):
    """Print a flow run as a table, one row per agent.

    Args:
        result: FlowRunResult to display
        labels: Optional mapping of agent id to display label
        console: Console instance (creates new if None)
    """
    from rich.table import Table
    from rich.text import Text

    if console is None:
        console = Console()

    if not result.agents:
        console.print("[yellow]No agents ran[/yellow]")
        return

    labels = labels or {}
    table = Table(title=f"Run {result.run_id}", show_header=True, header_style="bold magenta")
    table.add_column("Agent", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Output", overflow="fold")

    for agent_id, agent_result in result.agents.items():
        status = "[red]failed[/red]" if agent_result.is_error else "[green]completed[/green]"
        # Labels and outputs are user text, never markup
        table.add_row(Text(labels.get(agent_id, agent_id)), status, Text(agent_result.output))

    console.print(table)
