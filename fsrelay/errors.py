"""
Error taxonomy for the filesystem utility layer.

Every failure raised by FileService is an FsError subclass carrying a
human-readable message, the path involved, and the low-level exception
that triggered it (when there is one).
"""

import os
from typing import Optional, Union

PathLike = Union[str, os.PathLike]


class FsError(Exception):
    """Base class for filesystem utility failures"""

    def __init__(
        self,
        message: str,
        path: Optional[PathLike] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.path = os.fspath(path) if path is not None else None
        self.cause = cause

    def to_dict(self) -> dict:
        """Serializable view used by the HTTP error handler"""
        return {
            "detail": self.message,
            "error": type(self).__name__,
            "path": self.path,
        }


class NotFoundError(FsError):
    """stat() failed for the path"""


class NotAFileError(FsError):
    """Path exists but is not a regular file"""


class NotADirError(FsError):
    """Path exists but is not a directory"""


class ReadError(FsError):
    pass


class WriteError(FsError):
    pass


class CreateError(FsError):
    pass


class RemoveError(FsError):
    pass


class RenameError(FsError):
    def __init__(
        self,
        message: str,
        path: Optional[PathLike] = None,
        cause: Optional[BaseException] = None,
        target: Optional[PathLike] = None,
    ):
        super().__init__(message, path, cause)
        self.target = os.fspath(target) if target is not None else None

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["target"] = self.target
        return data


class ParseError(FsError):
    """Content was read but is not valid JSON"""


class RelayError(Exception):
    """A hosted execution context failed to answer over its channel"""


class ScriptExecutionError(RelayError):
    """The context answered, but the code it ran failed"""
