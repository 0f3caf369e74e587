from __future__ import annotations

import logging
import time

from gxr.core.classifier import classify_components
from gxr.core.errors import DuplicateComponentError, ManifestCommitError
from gxr.core.manifest import write_manifest
from gxr.core.ports.bundler import Bundler
from gxr.core.producer import discard_bundles, make_targets, produce_bundles, publish_bundles
from gxr.models import BuildConfig, BuildResult

logger = logging.getLogger(__name__)


async def run_build(config: BuildConfig, bundler: Bundler | None = None) -> BuildResult:
    """Run one build pass: classify, bundle, publish, then commit the manifest.

    Every call starts from a fresh scan of ``config.components_dir``; nothing is
    carried over from earlier passes. Bundles are published only when every
    component compiled, so published files always match the current manifest.
    """
    if bundler is None:
        from gxr.bundler.esbuild_adapter import EsbuildBundler

        bundler = EsbuildBundler(config)

    started = time.monotonic()

    def _finish(result: BuildResult) -> BuildResult:
        result.duration = time.monotonic() - started
        return result

    try:
        components = classify_components(config.components_dir)
    except DuplicateComponentError as exc:
        logger.error("%s", exc)
        return _finish(BuildResult(errors=[str(exc)]))

    logger.info("Found %d client component(s) in %s", len(components), config.components_dir)

    targets = make_targets(components, config)
    targets = await produce_bundles(targets, bundler, config.concurrency)
    result = BuildResult(components=len(components), targets=targets)

    if result.failed_targets:
        discard_bundles(targets)
    else:
        try:
            publish_bundles(targets)
        except OSError as exc:
            message = f"Could not publish bundles: {exc}"
            logger.error("%s", message)
            result.errors.append(message)
            discard_bundles(targets)
            return _finish(result)

    try:
        result.manifest_committed, result.manifest_changed = write_manifest(
            targets, config.manifest_path, config.output_dir
        )
    except ManifestCommitError as exc:
        logger.error("%s", exc)
        result.errors.append(str(exc))

    return _finish(result)
