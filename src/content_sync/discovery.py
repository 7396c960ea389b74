"""Content file discovery for a flat content directory."""

import logging
from pathlib import Path
from typing import List, Union

logger = logging.getLogger(__name__)

# Extensions handled by a content processor
CONTENT_EXTENSIONS = (".md", ".html", ".tmpl")

SIDECAR_EXTENSION = ".yaml"


def sidecar_path(file_path: Union[str, Path]) -> Path:
    """Return the metadata sidecar path for a content file (``a.md`` -> ``a.yaml``)."""
    return Path(file_path).with_suffix(SIDECAR_EXTENSION)


def discover_files(directory: Union[str, Path]) -> List[Path]:
    """Find the content files in ``directory`` that are ready to sync.

    Only the top level of the directory is scanned. A content file is ready
    once its sidecar exists; files without one are skipped.

    Args:
        directory: Directory holding content and sidecar files

    Returns:
        Content file paths sorted lexicographically
    """
    root = Path(directory)
    candidates = set()
    for extension in CONTENT_EXTENSIONS:
        candidates.update(path for path in root.glob(f"*{extension}") if path.is_file())

    ready = []
    for path in candidates:
        if sidecar_path(path).exists():
            ready.append(path)
        else:
            logger.debug(f"Skipping {path.name}: no {SIDECAR_EXTENSION} sidecar")

    return sorted(ready, key=str)
