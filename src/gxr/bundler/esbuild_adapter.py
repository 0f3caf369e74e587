from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path

from gxr.core.errors import BundleError
from gxr.models import BuildConfig, BuildTarget

logger = logging.getLogger(__name__)

_HYDRATION_ENTRY = """\
import {{ createElement }} from "react";
import {{ hydrateRoot }} from "react-dom/client";
import {{ {export} as Component }} from {source};

const selector = {selector};

function mount() {{
  for (const el of document.querySelectorAll(selector)) {{
    if (el.__gxrRoot) continue;
    const props = JSON.parse(el.getAttribute("data-gxr-props") || "{{}}");
    el.__gxrRoot = hydrateRoot(el, createElement(Component, props));
  }}
}}

if (document.readyState === "loading") {{
  document.addEventListener("DOMContentLoaded", mount);
}} else {{
  mount();
}}
"""


def render_hydration_entry(target: BuildTarget) -> str:
    """Return the entry module that hydrates every element rendered for the component."""
    component = target.component
    return _HYDRATION_ENTRY.format(
        export=component.hydrated_export,
        source=json.dumps(target.source.as_posix()),
        selector=json.dumps(f'[data-gxr-component="{component.key}"]'),
    )


class EsbuildBundler:
    """Bundle components by running the ``esbuild`` executable.

    Implements the ``Bundler`` protocol. The generated hydration entry is piped
    over stdin; bare imports such as ``react`` resolve from the working directory.
    """

    def __init__(self, config: BuildConfig) -> None:
        self._executable = config.esbuild
        self._minify = config.minify

    def command(self, outfile: Path, sourcefile: str) -> list[str]:
        args = [
            self._executable,
            "--bundle",
            "--format=esm",
            "--platform=browser",
            "--jsx=automatic",
            "--loader=tsx",
            "--loader:.js=jsx",
            "--log-level=error",
            f"--sourcefile={sourcefile}",
            f"--outfile={outfile}",
        ]
        if self._minify:
            args += ["--minify", '--define:process.env.NODE_ENV="production"']
        return args

    async def bundle(self, target: BuildTarget) -> None:
        output = target.output
        staging = output.with_name(f".{output.name}.tmp")
        args = self.command(staging, f"{target.component.key}.hydrate.tsx")
        logger.debug("Running %s", " ".join(args))

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise BundleError(f"esbuild executable not found: {self._executable}") from None

        _, stderr = await process.communicate(render_hydration_entry(target).encode("utf-8"))
        if process.returncode != 0:
            staging.unlink(missing_ok=True)
            message = stderr.decode("utf-8", errors="replace").strip()
            raise BundleError(message or f"esbuild exited with code {process.returncode}")

        os.replace(staging, output)
