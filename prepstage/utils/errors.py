# prepstage/utils/errors.py
from __future__ import annotations

from typing import Any


class UserInputError(RuntimeError):
    """
    Raised for invalid user-provided declarations (config, data source
    types, etc). Should NOT print traceback.
    """


class PreparatorError(RuntimeError):
    """Base class of every failure raised by the preparation layer."""


class HydrationError(PreparatorError, ValueError):
    """
    Text payload does not decode into the requested type.

    Always raised synchronously at the call site, never deferred to a job.
    """

    def __init__(self, message: str, *, target: Any = None):
        super().__init__(message)
        self.target = target


class StageExecutionError(PreparatorError):
    """
    The author-supplied transform failed.

    The original exception is chained as ``__cause__``; no partial output
    survives.
    """

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(
            f"[{stage}] prepare failed: {type(cause).__name__}: {cause}"
        )
        self.stage = stage
        self.cause = cause
        self.__cause__ = cause

    def __reduce__(self):
        # 跨进程（ProcessPool）传回时按构造参数重建
        return type(self), (self.stage, self.cause)


class PreparedDataTooLargeError(PreparatorError):
    """Prepared data exceeds the configured size limit (strict mode)."""

    def __init__(self, stage: str, size: int, limit: int):
        super().__init__(
            f"[{stage}] prepared data is {size} bytes, limit is {limit} bytes"
        )
        self.stage = stage
        self.size = size
        self.limit = limit

    def __reduce__(self):
        return type(self), (self.stage, self.size, self.limit)
