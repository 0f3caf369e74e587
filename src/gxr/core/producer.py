from __future__ import annotations

import asyncio
import hashlib
import logging
import os
from collections.abc import Sequence
from pathlib import Path
from typing import cast

from gxr.core.errors import BundleError
from gxr.core.ports.bundler import Bundler
from gxr.models import BuildConfig, BuildTarget, ClientComponent

logger = logging.getLogger(__name__)

_HASH_LENGTH = 16


def artifact_hash(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()[:_HASH_LENGTH]


def staging_path(output: Path) -> Path:
    """Where a bundle is written before the pass decides whether to publish it."""
    return output.with_name(f".{output.name}.staged")


def make_targets(components: Sequence[ClientComponent], config: BuildConfig) -> list[BuildTarget]:
    """Pair each component with its output path, ``<bundle_dir>/<key>.js``."""
    source_root = config.components_dir.resolve()
    bundle_root = config.bundle_dir.resolve()
    return [
        BuildTarget(
            component=component,
            source=source_root / component.path,
            output=bundle_root / f"{component.key}.js",
        )
        for component in components
    ]


async def _produce_one(target: BuildTarget, bundler: Bundler) -> BuildTarget:
    key = target.component.key
    staged = staging_path(target.output)
    try:
        staged.parent.mkdir(parents=True, exist_ok=True)
        staged.unlink(missing_ok=True)
        await bundler.bundle(target.model_copy(update={"output": staged}))
        if not staged.is_file():
            raise BundleError(f"bundler reported success but wrote no file at {staged}")
        digest = artifact_hash(staged)
    except (BundleError, OSError) as exc:
        logger.error("Failed to bundle %s: %s", key, exc)
        return target.failed(str(exc))
    except Exception as exc:
        logger.exception("Unexpected error while bundling %s", key)
        return target.failed(f"{type(exc).__name__}: {exc}")

    logger.debug("Bundled %s -> %s", key, staged)
    return target.succeeded(digest)


async def produce_bundles(
    targets: Sequence[BuildTarget],
    bundler: Bundler,
    concurrency: int = 4,
) -> list[BuildTarget]:
    """Bundle every target, at most *concurrency* at a time.

    Bundles land at their ``staging_path``; ``publish_bundles`` moves them into
    place once the whole pass has succeeded. A failing target never cancels its
    siblings. The returned list is in the same order as *targets*.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    semaphore = asyncio.Semaphore(concurrency)
    results: list[BuildTarget | None] = [None] * len(targets)

    async def _run(index: int, target: BuildTarget) -> None:
        async with semaphore:
            results[index] = await _produce_one(target, bundler)

    await asyncio.gather(*(_run(i, t) for i, t in enumerate(targets)))

    return cast(list[BuildTarget], results)


def publish_bundles(targets: Sequence[BuildTarget]) -> None:
    """Move every staged bundle over its published path."""
    for target in targets:
        os.replace(staging_path(target.output), target.output)
        logger.info("Bundled %s -> %s", target.component.key, target.output)


def discard_bundles(targets: Sequence[BuildTarget]) -> None:
    for target in targets:
        staged = staging_path(target.output)
        try:
            staged.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Could not remove staged bundle %s: %s", staged, exc)
