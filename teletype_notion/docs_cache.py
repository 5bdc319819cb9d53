"""
File-based cache for the downloaded manual and API examples.

Fetching the manual on every run is slow and unnecessary while iterating
on the converter, so the HTML is kept in a downloads directory and read
from there until the file is deleted.
"""

from pathlib import Path
from typing import Optional, Union

from .logger import get_module_logger

logger = get_module_logger("docs_cache")

DOCS_FILE = "docs.html"
EXAMPLE_FILE = "example.json"


class DocsCache:
    """
    Text files stored by name in a cache directory.
    """

    def __init__(self, cache_dir: Optional[Union[str, Path]] = None):
        """
        Initialize the cache.

        Args:
            cache_dir: Directory to store cached files.
                       Defaults to ./downloads/
        """
        if cache_dir is None:
            cache_dir = Path.cwd() / "downloads"

        self.cache_dir = Path(cache_dir)

    def _path(self, name: str) -> Path:
        # Names are plain file names; keep them inside the cache directory
        safe_name = "".join(c if c.isalnum() or c in '-_.' else '_' for c in name)
        return self.cache_dir / safe_name

    def get(self, name: str) -> Optional[str]:
        """
        Read a cached file.

        Returns:
            The file contents, or None on a cache miss
        """
        path = self._path(name)
        if not path.exists():
            logger.debug(f"Cache miss: {name}")
            return None

        try:
            contents = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Failed to read cached {name}: {e}")
            return None

        logger.info(f"Loaded {name} from {self.cache_dir}")
        return contents

    def put(self, name: str, contents: str) -> Path:
        """
        Store a file, creating the cache directory if needed.

        Returns:
            Path of the written file
        """
        if not self.cache_dir.exists():
            logger.info(f"Creating cache directory {self.cache_dir}")
            self.cache_dir.mkdir(parents=True, exist_ok=True)

        path = self._path(name)
        path.write_text(contents, encoding="utf-8")
        logger.info(f"Cached {name} -> {path}")
        return path

    def exists(self, name: str) -> bool:
        """Check if a file is cached."""
        return self._path(name).exists()

    def delete(self, name: str) -> bool:
        """Delete a cached file."""
        path = self._path(name)
        if path.exists():
            path.unlink()
            logger.info(f"Deleted cached {name}")
            return True
        return False


_default_cache: Optional[DocsCache] = None


def get_default_cache() -> DocsCache:
    """Get or create the default cache instance."""
    global _default_cache
    if _default_cache is None:
        _default_cache = DocsCache()
    return _default_cache
