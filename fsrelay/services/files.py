"""
Asynchronous filesystem utility layer.

FileService wraps the blocking os calls in asyncio.to_thread and reports
failures as FsError subclasses. Existence checks are predicates that raise
instead of returning booleans, so callers branch on the exception type.

The check-then-act operations (read_file, ensure_file, ensure_directory) are
best effort: the filesystem can change between the check and the act, and
that surfaces as the act's own error. create_file_exclusive is the atomic
alternative for callers that need a single creator.
"""

import asyncio
import json
import logging
import os
import shutil
import stat
from typing import Any, Callable, Iterable, List, Optional, Union

from fsrelay.errors import (
    CreateError,
    FsError,
    NotADirError,
    NotAFileError,
    NotFoundError,
    ParseError,
    PathLike,
    ReadError,
    RemoveError,
    RenameError,
    WriteError,
)
from fsrelay.services.versions import filter_files, resolve_latest

logger = logging.getLogger(__name__)

Observer = Callable[[FsError], None]


def log_failure(error: FsError) -> None:
    """Default observer: log every failure the service raises"""
    if error.cause is not None:
        logger.warning(f"{type(error).__name__}: {error.message} ({error.cause})")
    else:
        logger.warning(f"{type(error).__name__}: {error.message}")


def try_parse_json(text: Union[str, bytes], path: Optional[PathLike] = None) -> Any:
    """
    Parse JSON text.

    Args:
        text: JSON document
        path: File the text came from, attached to the error

    Returns:
        Parsed value

    Raises:
        ParseError: text is not valid JSON
    """
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ParseError("Failed to parse json", path, exc) from exc


def _check_file(path: PathLike) -> None:
    try:
        st = os.stat(path)
    except (OSError, ValueError) as exc:
        raise NotFoundError(
            f"No such file or directory: {os.fspath(path)}", path, exc
        ) from exc
    if not stat.S_ISREG(st.st_mode):
        raise NotAFileError(f"Not a file: {os.fspath(path)}", path)


def _check_directory(path: PathLike) -> None:
    try:
        st = os.stat(path)
    except (OSError, ValueError) as exc:
        raise NotFoundError(
            f"Directory does not exist: {os.fspath(path)}", path, exc
        ) from exc
    if not stat.S_ISDIR(st.st_mode):
        raise NotADirError(f"Not a directory: {os.fspath(path)}", path)


def _read_text(path: PathLike) -> str:
    try:
        with open(path, "r", encoding="utf-8", newline="") as handle:
            return handle.read()
    except (OSError, ValueError) as exc:
        raise ReadError(f"Could not read file: {os.fspath(path)}", path, exc) from exc


def _write(path: PathLike, data: Union[str, bytes], encoding: str, append: bool) -> None:
    mode = "a" if append else "w"
    try:
        if isinstance(data, bytes):
            with open(path, mode + "b") as handle:
                handle.write(data)
        else:
            with open(path, mode, encoding=encoding, newline="") as handle:
                handle.write(data)
    except (OSError, ValueError) as exc:
        raise WriteError(f"Could not write file: {os.fspath(path)}", path, exc) from exc


def _list(path: PathLike) -> List[str]:
    try:
        return os.listdir(path)
    except (OSError, ValueError) as exc:
        raise ReadError(
            f"Could not read directory: {os.fspath(path)}", path, exc
        ) from exc


def _mkdir(path: PathLike) -> None:
    try:
        os.mkdir(path)
    except (OSError, ValueError) as exc:
        raise CreateError(
            f"Could not create directory: {os.fspath(path)}", path, exc
        ) from exc


def _create_exclusive(path: PathLike) -> bool:
    try:
        with open(path, "x", encoding="utf-8"):
            pass
    except FileExistsError:
        return False
    except (OSError, ValueError) as exc:
        raise CreateError(f"Could not create file: {os.fspath(path)}", path, exc) from exc
    return True


def _remove(path: PathLike) -> None:
    try:
        st = os.lstat(path)
    except FileNotFoundError:
        return
    except (OSError, ValueError) as exc:
        raise RemoveError(f"Could not remove: {os.fspath(path)}", path, exc) from exc

    try:
        if stat.S_ISDIR(st.st_mode):
            shutil.rmtree(path)
        else:
            os.remove(path)
    except FileNotFoundError:
        # removed underneath us; the goal state holds
        return
    except (OSError, ValueError) as exc:
        raise RemoveError(f"Could not remove: {os.fspath(path)}", path, exc) from exc


def _rename(old_path: PathLike, new_path: PathLike) -> None:
    try:
        os.rename(old_path, new_path)
    except (OSError, ValueError) as exc:
        raise RenameError(
            f"Could not rename {os.fspath(old_path)} to {os.fspath(new_path)}",
            old_path,
            exc,
            target=new_path,
        ) from exc


class FileService:
    """
    Stateless async operations over a directory tree.

    Every FsError raised from a public method is passed to the observer once
    before it propagates.
    """

    def __init__(self, observer: Optional[Observer] = None):
        self.observer: Observer = observer or log_failure

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await asyncio.to_thread(func, *args)
        except FsError as error:
            self.observer(error)
            raise

    def _fail(self, error: FsError) -> FsError:
        self.observer(error)
        return error

    async def file_exists(self, path: PathLike) -> None:
        """
        Succeed iff path exists and is a regular file.

        Raises:
            NotFoundError: stat failed
            NotAFileError: path is a directory or other non-file
        """
        await self._run(_check_file, path)

    async def directory_exists(self, path: PathLike) -> None:
        """
        Succeed iff path exists and is a directory.

        Raises:
            NotFoundError: stat failed
            NotADirError: path is not a directory
        """
        await self._run(_check_directory, path)

    async def read_file(self, path: PathLike) -> str:
        """Read a whole file as UTF-8 text after checking it exists"""
        await self.file_exists(path)
        return await self._run(_read_text, path)

    async def write_file(
        self,
        path: PathLike,
        data: Union[str, bytes],
        *,
        encoding: str = "utf-8",
        append: bool = False,
    ) -> None:
        """Create or truncate path and write data (or append to it)"""
        await self._run(_write, path, data, encoding, append)

    async def ensure_file(self, path: PathLike) -> bool:
        """
        Make sure a file exists at path.

        Any failed existence check, including a directory in the way, leads
        to writing an empty string to the path. An existing file is left
        untouched.

        Returns:
            True once the file exists

        Raises:
            WriteError: the empty write failed
        """
        try:
            await asyncio.to_thread(_check_file, path)
            return True
        except FsError as exc:
            logger.debug(f"ensure_file: creating {os.fspath(path)} ({exc.message})")

        await self.write_file(path, "")
        return True

    async def create_file_exclusive(self, path: PathLike) -> bool:
        """
        Atomically create an empty file if nothing exists at path.

        Returns:
            True if this call created the file, False if it already existed
        """
        return await self._run(_create_exclusive, path)

    async def read_json_from_file(self, path: PathLike) -> Any:
        """
        Read and parse a JSON file.

        Raises:
            NotFoundError, NotAFileError, ReadError: the file could not be read
            ParseError: the content is not valid JSON
        """
        text = await self.read_file(path)
        try:
            return try_parse_json(text, path)
        except ParseError as error:
            self.observer(error)
            raise

    async def write_json_to_file(self, path: PathLike, value: Any, *, indent: int = 2) -> None:
        """Serialize value as JSON and write it to path"""
        try:
            text = json.dumps(value, indent=indent)
        except (TypeError, ValueError) as exc:
            raise self._fail(
                WriteError(f"Could not serialize json for: {os.fspath(path)}", path, exc)
            ) from exc
        await self.write_file(path, text)

    async def list_directory(self, path: PathLike) -> List[str]:
        """
        List the filenames in a directory.

        Order is whatever the OS returns.
        """
        await self.directory_exists(path)
        return await self._run(_list, path)

    @staticmethod
    def filter_files(
        files: Iterable[str],
        predicate: Callable[[str], bool],
        mapper: Optional[Callable[[str], Any]] = None,
    ) -> List[Any]:
        return filter_files(files, predicate, mapper)

    @staticmethod
    def resolve_latest(
        files: Iterable[str],
        predicate: Callable[[str], bool],
        mapper: Optional[Callable[[str], Any]] = None,
        prefix: Optional[str] = None,
        suffix: Optional[str] = None,
        *,
        numeric: bool = False,
    ) -> Optional[str]:
        return resolve_latest(files, predicate, mapper, prefix, suffix, numeric=numeric)

    async def create_directory(self, path: PathLike) -> None:
        """Create a single directory level (parents must exist)"""
        await self._run(_mkdir, path)

    async def ensure_directory(self, path: PathLike) -> bool:
        """
        Make sure a directory exists at path.

        Returns:
            True once the directory exists

        Raises:
            CreateError: mkdir failed
        """
        try:
            await asyncio.to_thread(_check_directory, path)
            return True
        except FsError as exc:
            logger.debug(f"ensure_directory: creating {os.fspath(path)} ({exc.message})")

        await self.create_directory(path)
        return True

    async def rm(self, path: PathLike) -> None:
        """
        Recursively remove a file or directory tree.

        A missing path counts as already removed.

        Raises:
            RemoveError: removal failed part way; retrying is safe
        """
        await self._run(_remove, path)

    async def rn(self, old_path: PathLike, new_path: PathLike) -> None:
        """Rename old_path to new_path (atomic where the filesystem allows)"""
        await self._run(_rename, old_path, new_path)


# Global file service instance
file_service = FileService()
