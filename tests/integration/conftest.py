"""Fixtures for integration tests that run the real esbuild executable."""

import shutil
from pathlib import Path

import pytest

_REACT_STUBS = {
    "react/index.js": "export function createElement(type, props) { return { type, props }; }\n"
    "export function useState(value) { return [value, () => {}]; }\n",
    "react/jsx-runtime.js": "export function jsx(type, props) { return { type, props }; }\n"
    "export const jsxs = jsx;\nexport const Fragment = Symbol.for('react.fragment');\n",
    "react-dom/client.js": "export function hydrateRoot(el, node) { return { el, node }; }\n",
}


@pytest.fixture(scope="session")
def esbuild_executable() -> str:
    """Locate esbuild on PATH, skipping the test when it is not installed."""
    executable = shutil.which("esbuild")
    if executable is None:
        pytest.skip("esbuild is not installed")
    return executable


@pytest.fixture
def node_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory with minimal react and react-dom modules, used as the working directory."""
    for relative, content in _REACT_STUBS.items():
        path = tmp_path / "node_modules" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    return tmp_path
