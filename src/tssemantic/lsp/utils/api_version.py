"""TypeScript version handling used to gate LSP features."""

import functools
import json
import logging
import re
from pathlib import Path
from typing import Optional, Tuple


logger = logging.getLogger(__name__)

_VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)\.(\d+)")


@functools.total_ordering
class API:
    """A parsed TypeScript version, comparable by (major, minor, patch)."""

    def __init__(self, display_name: str, version: Tuple[int, int, int]):
        self.display_name = display_name
        self.version = version

    @classmethod
    def from_version_string(cls, version_string: str) -> "API":
        """
        Parse a version such as ``3.7.2`` or ``5.5.0-dev.20240501``.

        Raises:
            ValueError: If the string does not start with major.minor.patch
        """
        match = _VERSION_PATTERN.match(version_string.strip())
        if not match:
            raise ValueError(f"Invalid TypeScript version: {version_string!r}")
        major, minor, patch = (int(part) for part in match.groups())
        return cls(version_string.strip(), (major, minor, patch))

    def gte(self, other: "API") -> bool:
        return self >= other

    def __eq__(self, other):
        if not isinstance(other, API):
            return NotImplemented
        return self.version == other.version

    def __lt__(self, other):
        if not isinstance(other, API):
            return NotImplemented
        return self.version < other.version

    def __hash__(self):
        return hash(self.version)

    def __repr__(self):
        return f"API({self.display_name!r})"


def detect_typescript_version(tsserver_path: str) -> Optional[API]:
    """
    Detect the version of the TypeScript install that owns a tsserver path.

    Both ``typescript/bin/tsserver`` and ``typescript/lib/tsserver.js`` live one
    directory below the package root holding ``package.json``.

    Args:
        tsserver_path: Path to tsserver, symlinks allowed

    Returns:
        The parsed version, or None if it cannot be determined
    """
    try:
        package_json = Path(tsserver_path).resolve().parent.parent / "package.json"
        with open(package_json) as f:
            package = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read TypeScript package.json for {tsserver_path}: {e}")
        return None

    version = package.get("version")
    if not isinstance(version, str):
        logger.warning(f"No version found in {package_json}")
        return None

    try:
        return API.from_version_string(version)
    except ValueError as e:
        logger.warning(str(e))
        return None
