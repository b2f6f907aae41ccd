"""
Version-aware artifact selection.

Filenames carry a loose ``major.minor.revision`` version in their first three
period-separated components. resolve_latest picks the newest one from a
directory listing.
"""

from typing import Any, Callable, Iterable, List, Optional, Tuple


def filter_files(
    files: Iterable[str],
    predicate: Callable[[str], bool],
    mapper: Optional[Callable[[str], Any]] = None,
) -> List[Any]:
    """
    Apply predicate to files, then mapper to the survivors.

    Args:
        files: Filenames to filter
        predicate: Keeps a filename when it returns a truthy value
        mapper: Optional transform applied after filtering

    Returns:
        New list of (possibly mapped) filenames
    """
    kept = [f for f in files if predicate(f)]
    if mapper is None:
        return kept
    return [mapper(f) for f in kept]


def version_components(filename: str) -> Optional[Tuple[str, str, str]]:
    """
    Return (major, minor, revision) for a filename, or None if it has no version.

    Only the first three period-separated parts are considered, and all three
    must be non-empty.
    """
    parts = filename.split(".")
    if len(parts) < 3:
        return None
    major, minor, revision = parts[:3]
    if not major or not minor or not revision:
        return None
    return major, minor, revision


def _numeric_key(filename: str) -> tuple:
    # numeric components sort as integers, ahead of non-numeric ones
    key = []
    for part in version_components(filename):
        if part.isdecimal():
            key.append((0, int(part), ""))
        else:
            key.append((1, 0, part))
    return tuple(key), filename


def resolve_latest(
    files: Iterable[str],
    predicate: Callable[[str], bool],
    mapper: Optional[Callable[[str], Any]] = None,
    prefix: Optional[str] = None,
    suffix: Optional[str] = None,
    *,
    numeric: bool = False,
) -> Optional[str]:
    """
    Pick the newest versioned filename.

    By default candidates are ordered by plain string comparison of the whole
    filename, so "10.0.0" sorts before "9.0.0"; callers relying on this keep
    their versions zero-padded. Pass numeric=True to compare the version
    components as integers instead.

    Args:
        files: Directory listing
        predicate: Filter applied before selection
        mapper: Optional transform applied after filtering
        prefix: Prepended to the winner when suffix is also given
        suffix: Appended to the winner when prefix is also given
        numeric: Compare version components numerically

    Returns:
        The winning filename (wrapped when prefix and suffix are both given),
        or None if no candidate has three version components
    """
    latest = None
    for file in filter_files(files, predicate, mapper):
        if version_components(file) is None:
            continue
        if latest is None:
            latest = file
            continue
        if numeric:
            if _numeric_key(file) > _numeric_key(latest):
                latest = file
        elif file > latest:
            latest = file

    if latest is None:
        return None
    if prefix and suffix:
        return f"{prefix}{latest}{suffix}"
    return latest
