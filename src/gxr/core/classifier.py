from __future__ import annotations

import hashlib
import logging
import os
from collections.abc import Iterator
from pathlib import Path, PurePosixPath

from gxr.core.ast import analyze_source
from gxr.core.errors import DuplicateComponentError
from gxr.core.languages import detect_language_from_path, is_component_file
from gxr.models import ClientComponent

logger = logging.getLogger(__name__)

_SKIPPED_DIRS = frozenset({"node_modules", "__pycache__"})


def component_key(relative_path: str) -> str:
    """Map a source path relative to the components root to its manifest key.

    ``Counter.tsx`` becomes ``Counter`` and ``widgets/Chart/index.tsx`` becomes
    ``widgets/Chart``.
    """
    stem = PurePosixPath(relative_path).with_suffix("")
    if stem.name == "index" and len(stem.parts) > 1:
        stem = stem.parent
    return stem.as_posix()


def _iter_sources(root: Path) -> Iterator[Path]:
    def _on_error(exc: OSError) -> None:
        logger.warning("Cannot read directory %s: %s", exc.filename, exc.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in _SKIPPED_DIRS)
        for name in sorted(filenames):
            path = Path(dirpath) / name
            if is_component_file(path):
                yield path


def classify_components(components_dir: str | Path) -> list[ClientComponent]:
    """Find every client component under *components_dir*, sorted by key.

    A missing directory yields an empty list and a warning. Raises
    ``DuplicateComponentError`` when two files resolve to the same key.
    """
    root = Path(components_dir)
    if not root.is_dir():
        logger.warning("Components directory %s not found; there is nothing to hydrate", root)
        return []

    found: dict[str, ClientComponent] = {}
    for path in _iter_sources(root):
        try:
            source = path.read_bytes()
        except OSError as exc:
            logger.warning("Skipping unreadable file %s: %s", path, exc)
            continue

        language = detect_language_from_path(path)
        info = analyze_source(source, language)
        relative = path.relative_to(root).as_posix()
        if not info.is_client:
            logger.debug("%s is server-only", relative)
            continue

        key = component_key(relative)
        if key in found:
            raise DuplicateComponentError(key, found[key].path, relative)
        found[key] = ClientComponent(
            path=relative,
            key=key,
            language=language,
            fingerprint=hashlib.sha256(source).hexdigest(),
            exports=info.exports,
        )
        logger.debug("Classified %s as client component %s", relative, key)

    return sorted(found.values(), key=lambda c: c.key)
