import asyncio
import contextlib
from typing import Annotated

import typer
from rich.console import Console

from gxr.cli.build import (
    ComponentsOption,
    ConcurrencyOption,
    EsbuildOption,
    MinifyOption,
    OutputOption,
    config_or_exit,
)
from gxr.core.watch import run_watch

console = Console()


def watch(
    components: ComponentsOption = None,
    output: OutputOption = None,
    concurrency: ConcurrencyOption = None,
    esbuild: EsbuildOption = None,
    minify: MinifyOption = None,
    debounce: Annotated[
        float | None, typer.Option("--debounce", help="Seconds to wait for changes to settle (default: 0.3).")
    ] = None,
) -> None:
    """Watch mode for development."""
    config = config_or_exit(
        components_dir=components,
        output_dir=output,
        concurrency=concurrency,
        esbuild=esbuild,
        minify=minify,
        debounce=debounce,
    )
    console.print("[cyan]Watching for changes...[/cyan]")
    console.print(f"  Components: {config.components_dir}")
    console.print(f"  Output:     {config.output_dir}")

    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(run_watch(config))
    console.print("[cyan]Stopped watching.[/cyan]")
