"""Detection of document edits made while classifications are in flight."""

from typing import Any, Callable


class StalenessGuard:
    """
    Snapshot of a document version taken before the first backend request.

    Results computed from responses are only valid if the version is still
    the same once every response has arrived. There is no partial
    invalidation: a stale guard discards the whole result.
    """

    def __init__(self, version_getter: Callable[[], Any]):
        """
        Snapshot the current version.

        Args:
            version_getter: Returns the document's current version
        """
        self._version_getter = version_getter
        self._snapshot = version_getter()

    @property
    def snapshot_version(self) -> Any:
        return self._snapshot

    def is_stale(self) -> bool:
        """Re-sample the version and compare it with the snapshot."""
        return self._version_getter() != self._snapshot
