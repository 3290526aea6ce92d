"""Run a flow from the command line.

Usage:
    python -m conduit --flow my_flow.json --prompt "Summarise this" [--stream true]
"""

import asyncio
import sys

from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from .agents.agent.factory import create_executor
from .agents.exceptions import FlowValidationError
from .agents.graph import NodeKind, load_flow
from .agents.logging_config import log_run_result, log_with_panel, setup_logging_from_settings
from .settings import CliSettings


async def main(settings: CliSettings) -> int:
    console = Console()
    try:
        flow = load_flow(settings.flow)
    except (OSError, ValidationError) as e:
        logger.error(f"[CLI] Cannot load flow from {settings.flow}: {e}")
        log_with_panel(escape(str(e)), title="Cannot load flow", console=console, border_style="red")
        return 2

    executor = create_executor(settings)
    labels = {node.id: node.label for node in flow.nodes_of_kind(NodeKind.AGENT)}

    try:
        if settings.stream:
            current = {"agent": None}

            def on_chunk(agent_id: str, text: str) -> None:
                if current["agent"] != agent_id:
                    current["agent"] = agent_id
                    console.print(f"\n[bold cyan]{escape(labels.get(agent_id, agent_id))}[/bold cyan]")
                console.print(text, end="", markup=False, highlight=False)

            result = await executor.stream_flow(flow, settings.prompt, on_chunk)
            console.print()
        else:
            result = await executor.run(flow, settings.prompt)
    except FlowValidationError as e:
        log_with_panel(escape(e.reason), title="Invalid flow", console=console, border_style="red")
        return 2
    finally:
        await executor.client.aclose()

    log_run_result(result, labels=labels, console=console)
    return 1 if result.failed_agents else 0


def run() -> None:
    settings = CliSettings()
    setup_logging_from_settings(settings, use_stderr=True)

    if not settings.flow or not settings.prompt:
        logger.error("Both --flow and --prompt are required")
        sys.exit(2)

    sys.exit(asyncio.run(main(settings)))


if __name__ == "__main__":
    run()
