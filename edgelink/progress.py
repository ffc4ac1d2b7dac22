import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Protocol

from rich.console import Console

logger = logging.getLogger(__name__)


class ProgressSink(Protocol):
    """Where user-facing lines and waiting progress go. Purely observational."""

    def log(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def progress(self) -> None: ...

    def end_progress(self) -> None: ...


class RichProgressSink:
    """Prints to a rich console and mirrors every line into the ``edgelink`` logs."""

    def __init__(self, console: Console | None = None):
        self._console = console or Console()
        self._in_progress = False

    def log(self, message: str) -> None:
        self.end_progress()
        logger.info(message)
        self._console.print(f"[bold]Lambda@Edge:[/bold] {message}", highlight=False)

    def warn(self, message: str) -> None:
        self.end_progress()
        logger.warning(message)
        self._console.print(f"[bold yellow]Lambda@Edge: WARNING:[/bold yellow] {message}")

    def progress(self) -> None:
        self._in_progress = True
        self._console.print(".", end="", style="dim")

    def end_progress(self) -> None:
        if self._in_progress:
            self._in_progress = False
            self._console.print()


async def ticker(interval: float) -> AsyncIterator[int]:
    """Yield an increasing tick count, immediately and then every ``interval`` seconds.

    The consumer stops the ticks by leaving its loop; closing the generator cancels
    the pending sleep.
    """
    tick = 0
    while True:
        yield tick
        tick += 1
        await asyncio.sleep(interval)
