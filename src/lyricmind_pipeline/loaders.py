"""Data Loader Module

Reads song CSV sources line by line. A source is either a filesystem path
or an already-open text stream (handy for tests and for callers that
receive the CSV body over the wire).
"""

from pathlib import Path
from typing import IO, Iterator, Union

SongSource = Union[str, Path, IO[str]]


def iter_source_lines(source: SongSource) -> Iterator[str]:
    """Yield the lines of a CSV source without their line terminators.

    Args:
        source: Path to a UTF-8 CSV file (BOM optional), or an open text stream

    Yields:
        Each line with the trailing "\\n" / "\\r\\n" removed

    Raises:
        FileNotFoundError: If a path is given and the file does not exist
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        # utf-8-sig drops a leading byte-order mark from the header
        with path.open("r", encoding="utf-8-sig", newline="") as f:
            for line in f:
                yield line.rstrip("\r\n")
    else:
        for line in source:
            yield line.rstrip("\r\n")


def resolve_source_path(file_name: str, resources_dir: Union[str, Path]) -> Path:
    """Resolve a bulk-request file name against the resources directory.

    Returns the resolved path, or raises ValueError when the name points
    outside `resources_dir` (absolute paths, `..` segments).
    """
    base = Path(resources_dir).resolve()
    candidate = (base / file_name.strip()).resolve()
    if candidate != base and base not in candidate.parents:
        raise ValueError(f"File name escapes resources directory: {file_name!r}")
    return candidate
