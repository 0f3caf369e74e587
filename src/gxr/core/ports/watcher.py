from typing import Protocol


class FileWatcherPort(Protocol):
    """Subscription to component source changes.

    ``start`` begins delivering batches of added or modified paths to the
    callback the watcher was created with; ``stop`` ends the subscription.
    """

    async def start(self) -> None: ...

    async def stop(self) -> None: ...
