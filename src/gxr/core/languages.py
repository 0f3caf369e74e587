from pathlib import Path

_EXTENSION_LANGUAGE_MAP = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
}

COMPONENT_EXTENSIONS: frozenset[str] = frozenset(_EXTENSION_LANGUAGE_MAP)


def is_component_file(path: Path) -> bool:
    """Return True for component sources; type declaration files (``*.d.ts``) never are."""
    if path.name.lower().endswith(".d.ts"):
        return False
    return path.suffix.lower() in COMPONENT_EXTENSIONS


def detect_language_from_path(file_path: Path) -> str:
    suffix = file_path.suffix.lower()
    if suffix in _EXTENSION_LANGUAGE_MAP:
        return _EXTENSION_LANGUAGE_MAP[suffix]
    raise ValueError(f"Unsupported file extension: {suffix}")
