from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from gxr.core.errors import ManifestCommitError
from gxr.models import BuildManifest, BuildStatus, BuildTarget, ManifestEntry

logger = logging.getLogger(__name__)


def build_manifest(targets: Sequence[BuildTarget], output_dir: Path) -> BuildManifest:
    root = output_dir.resolve()
    components: dict[str, ManifestEntry] = {}
    for target in targets:
        if target.status is not BuildStatus.SUCCEEDED or target.artifact_hash is None:
            raise ValueError(f"Target {target.component.key} has not been built")
        components[target.component.key] = ManifestEntry(
            file=target.output.relative_to(root).as_posix(),
            hash=target.artifact_hash,
            source_hash=target.component.fingerprint,
            export=target.component.hydrated_export,
        )
    return BuildManifest(components=components)


def read_manifest(path: Path) -> BuildManifest | None:
    try:
        return BuildManifest.model_validate_json(path.read_bytes())
    except FileNotFoundError:
        return None
    except ValidationError as exc:
        logger.warning("Ignoring malformed manifest %s: %s", path, exc)
        return None


def commit_manifest(manifest: BuildManifest, path: Path) -> bool:
    """Atomically replace *path* with *manifest*.

    The document is written to a temporary file in the same directory and moved
    into place with ``os.replace``, so a reader sees either the old or the new
    manifest in full. Returns False when the file already holds identical
    content and nothing was written.
    """
    content = manifest.dumps()
    try:
        if path.read_text(encoding="utf-8") == content:
            return False
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.debug("Could not read current manifest %s: %s", path, exc)

    temp_name: str | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as temp_file:
            temp_name = temp_file.name
            temp_file.write(content)
            temp_file.flush()
            os.fsync(temp_file.fileno())
        os.replace(temp_name, path)
    except OSError as exc:
        if temp_name is not None:
            Path(temp_name).unlink(missing_ok=True)
        raise ManifestCommitError(f"Could not write manifest {path}: {exc}") from exc

    return True


def write_manifest(targets: Sequence[BuildTarget], manifest_path: Path, output_dir: Path) -> tuple[bool, bool]:
    """Commit a manifest for *targets* only if every one of them succeeded.

    Returns (committed, changed). When any target failed nothing is written and
    the previous manifest stays authoritative.
    """
    failed = [t.component.key for t in targets if t.status is not BuildStatus.SUCCEEDED]
    if failed:
        logger.warning("Keeping previous manifest; %d component(s) failed: %s", len(failed), ", ".join(failed))
        return False, False

    changed = commit_manifest(build_manifest(targets, output_dir), manifest_path)
    if changed:
        logger.info("Wrote manifest %s (%d component(s))", manifest_path, len(targets))
    else:
        logger.info("Manifest %s is up to date", manifest_path)
    return True, changed
