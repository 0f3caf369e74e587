from typing import Protocol

from gxr.models import BuildTarget


class Bundler(Protocol):
    async def bundle(self, target: BuildTarget) -> None:
        """Write a browser bundle for ``target.source`` to ``target.output``.

        Raises ``BundleError`` with the bundler's diagnostic on failure.
        """
        ...
