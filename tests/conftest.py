"""Shared fixtures and helpers for tests."""

import asyncio
from pathlib import Path

import pytest

from gxr.core.errors import BundleError
from gxr.models import BuildConfig, BuildTarget

_REPO_ROOT = Path(__file__).parent.parent

COUNTER_SOURCE = """\
"use client";

import { useState } from "react";

export default function Counter({ initialCount }: { initialCount: number }) {
  const [count, setCount] = useState(initialCount);
  return <button onClick={() => setCount(count + 1)}>{count}</button>;
}
"""

HEADER_SOURCE = """\
type HeaderProps = {
  title: string;
};

export default function Header({ title }: HeaderProps) {
  return <h1>{title}</h1>;
}
"""


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# FakeBundler: stands in for esbuild in unit tests
# ---------------------------------------------------------------------------


class FakeBundler:
    """Writes a small bundle per target, or fails for configured component keys."""

    def __init__(self, failures: dict[str, str] | None = None, delay: float = 0.0) -> None:
        self.failures = dict(failures or {})
        self.delay = delay
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0

    async def bundle(self, target: BuildTarget) -> None:
        key = target.component.key
        self.calls.append(key)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if key in self.failures:
                raise BundleError(self.failures[key])
            target.output.write_text(f"// hydrate {key}\n{target.source.read_text()}", encoding="utf-8")
        finally:
            self.active -= 1


def write_source(root: Path, relative: str, content: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def components_dir(tmp_path: Path) -> Path:
    path = tmp_path / "client" / "components"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def config(tmp_path: Path, components_dir: Path) -> BuildConfig:
    return BuildConfig(components_dir=components_dir, output_dir=tmp_path / "public", debounce=0.01)


@pytest.fixture
def fake_bundler() -> FakeBundler:
    return FakeBundler()
