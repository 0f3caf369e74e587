import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from gxr.core.errors import ConfigError
from gxr.models import BuildConfig

_ENV_VARS = {
    "components_dir": "GXR_COMPONENTS_DIR",
    "output_dir": "GXR_OUTPUT_DIR",
    "concurrency": "GXR_CONCURRENCY",
    "debounce": "GXR_DEBOUNCE",
    "esbuild": "GXR_ESBUILD",
}


def load_config(
    components_dir: str | Path | None = None,
    output_dir: str | Path | None = None,
    concurrency: int | None = None,
    debounce: float | None = None,
    esbuild: str | None = None,
    minify: bool | None = None,
) -> BuildConfig:
    """Build a config from explicit values, then ``GXR_*`` environment variables, then defaults."""
    explicit = {
        "components_dir": components_dir,
        "output_dir": output_dir,
        "concurrency": concurrency,
        "debounce": debounce,
        "esbuild": esbuild,
        "minify": minify,
    }
    values: dict[str, Any] = {}
    for field, value in explicit.items():
        if value is None and field in _ENV_VARS:
            value = os.getenv(_ENV_VARS[field]) or None
        if value is not None:
            values[field] = value

    try:
        return BuildConfig.model_validate(values)
    except ValidationError as exc:
        problems = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors())
        raise ConfigError(f"Invalid configuration: {problems}") from exc
