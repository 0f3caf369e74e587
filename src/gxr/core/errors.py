class GxrError(Exception):
    """Base class for errors raised by the build pipeline."""


class ConfigError(GxrError):
    pass


class DuplicateComponentError(GxrError):
    """Two source files resolve to the same manifest key."""

    def __init__(self, key: str, first: str, second: str) -> None:
        self.key = key
        self.paths = (first, second)
        super().__init__(f"Duplicate component '{key}': {first} and {second}")


class BundleError(GxrError):
    """The bundler could not produce an artifact for one component."""


class ManifestCommitError(GxrError):
    pass
