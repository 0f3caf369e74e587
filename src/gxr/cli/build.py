import asyncio
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from gxr.core.build import run_build
from gxr.core.config import load_config
from gxr.core.errors import ConfigError
from gxr.models import BuildConfig, BuildResult, BuildStatus

console = Console()

ComponentsOption = Annotated[
    Path | None,
    typer.Option("--components", help="Components directory (default: ./client/components)."),
]
OutputOption = Annotated[Path | None, typer.Option("--output", help="Output directory (default: ./public).")]
ConcurrencyOption = Annotated[
    int | None, typer.Option("--concurrency", help="Maximum number of bundler processes at once (default: 4).")
]
EsbuildOption = Annotated[str | None, typer.Option("--esbuild", help="Path to the esbuild executable.")]
MinifyOption = Annotated[bool | None, typer.Option("--minify/--no-minify", help="Minify bundles (default: on).")]


def config_or_exit(**values: object) -> BuildConfig:
    try:
        return load_config(**values)  # type: ignore[arg-type]
    except ConfigError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1) from exc


def print_result(result: BuildResult, config: BuildConfig) -> None:
    output_root = config.output_dir.resolve()
    for target in result.targets:
        key = target.component.key
        if target.status is BuildStatus.SUCCEEDED:
            console.print(f"[green]Built[/green] {key} -> {target.output.relative_to(output_root).as_posix()}")
        else:
            console.print(f"[red]Failed[/red] {key} ({escape(target.component.path)}): {escape(target.error or '')}")
    for error in result.errors:
        console.print(f"[red]Error[/red] {escape(error)}")

    if result.success:
        state = "written" if result.manifest_changed else "unchanged"
        console.print(
            f"[green]Done[/green] {result.components} client component(s) in {result.duration:.2f}s; "
            f"manifest {config.manifest_path} {state}"
        )
    else:
        console.print(f"[red]Build failed[/red]; manifest {config.manifest_path} left untouched")


def build(
    components: ComponentsOption = None,
    output: OutputOption = None,
    concurrency: ConcurrencyOption = None,
    esbuild: EsbuildOption = None,
    minify: MinifyOption = None,
) -> None:
    """Build client components for hydration."""
    config = config_or_exit(
        components_dir=components,
        output_dir=output,
        concurrency=concurrency,
        esbuild=esbuild,
        minify=minify,
    )
    result = asyncio.run(run_build(config))
    print_result(result, config)
    if not result.success:
        raise typer.Exit(1)
