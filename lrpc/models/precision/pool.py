# lrpc/models/precision/pool.py
"""
Scoped worker pool for per-column linear programs.

A ColumnPool is acquired once per top-level call (a single estimate or a
whole cross-validation run) and released on every exit path. Columns are
dispatched as independent tasks and the results are keyed by column index,
so assembly is positional regardless of completion order.
"""

import logging
from concurrent.futures import (
    Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor, as_completed
)
from contextlib import contextmanager
from multiprocessing.context import BaseContext
from typing import Any, Callable, Dict, Iterable, Iterator, Optional

import numpy as np

from lrpc.core.config import default_n_cores, get_config
from lrpc.core.exceptions import ColumnSolveError
from lrpc.core.types import ColumnTask, ExecutorKind, Matrix, Vector
from lrpc.core.validation import validate_choice, validate_positive_int

# Set up module-level logger
logger = logging.getLogger("lrpc.models.precision.pool")


class ColumnPool:
    """
    Bounded worker pool executing column tasks.

    With ``n_workers <= 1`` tasks run inline in the calling process and no
    executor is created. Task functions must be defined at module level when
    a process executor is used, so that they can be pickled.

    Attributes:
        n_workers: Number of workers
        executor: 'process' or 'thread'
        mp_context: Optional multiprocessing context for the process executor

    Examples:
        >>> from lrpc.models.precision.pool import ColumnPool
        >>> with ColumnPool(n_workers=1) as pool:
        ...     columns = pool.map_columns(task, range(p), gamma)
    """

    def __init__(self, n_workers: Optional[int] = None,
                 executor: Optional[ExecutorKind] = None,
                 mp_context: Optional[BaseContext] = None) -> None:
        if n_workers is None:
            n_workers = default_n_cores()
        if executor is None:
            executor = get_config("performance", "executor", "process")

        self.n_workers = validate_positive_int(n_workers, "n_cores")
        self.executor = validate_choice(executor, ("process", "thread"), "executor")
        self.mp_context = mp_context
        self._executor: Optional[Executor] = None

    def __enter__(self) -> "ColumnPool":
        if self.n_workers > 1:
            if self.executor == "thread":
                self._executor = ThreadPoolExecutor(max_workers=self.n_workers)
            else:
                self._executor = ProcessPoolExecutor(max_workers=self.n_workers,
                                                     mp_context=self.mp_context)
            logger.debug(f"Started {self.executor} pool with {self.n_workers} workers")
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

    def close(self) -> None:
        """Shut the executor down, cancelling queued tasks."""
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
            logger.debug("Worker pool shut down")

    @property
    def is_parallel(self) -> bool:
        return self._executor is not None

    def map_columns(self, fn: ColumnTask, indices: Iterable[int],
                    *args: Any) -> Dict[int, Vector]:
        """
        Run ``fn(index, *args)`` for every index.

        Args:
            fn: Column task returning a length-p vector
            indices: Column indices to solve
            *args: Read-only arguments shared by every task

        Returns:
            Dict mapping each index to its column vector

        Raises:
            ColumnSolveError: If any task fails; the remaining tasks are
                cancelled and the failing column is named
        """
        indices = [int(i) for i in indices]
        if self._executor is None:
            return {index: _run_inline(fn, index, args) for index in indices}

        futures: Dict[Future, int] = {
            self._executor.submit(fn, index, *args): index for index in indices
        }
        results: Dict[int, Vector] = {}
        for future in as_completed(futures):
            index = futures[future]
            try:
                results[index] = future.result()
            except Exception as e:
                for pending in futures:
                    pending.cancel()
                raise _column_failure(index, e) from e
        return results


def _run_inline(fn: Callable[..., Vector], index: int, args: tuple) -> Vector:
    try:
        return fn(index, *args)
    except ColumnSolveError:
        raise
    except Exception as e:
        raise _column_failure(index, e) from e


def _column_failure(index: int, error: Exception) -> ColumnSolveError:
    """Wrap a task failure so the column identity survives the pool."""
    return ColumnSolveError(
        f"Column {index} failed: {getattr(error, 'message', error)}",
        column=index,
        status=getattr(error, "status", None),
        algorithm=getattr(error, "algorithm", None),
        issue=getattr(error, "issue", None) or type(error).__name__
    )


def assemble_columns(columns: Dict[int, Vector], p: int) -> Matrix:
    """
    Place every column vector at its own positional index.

    Raises:
        ColumnSolveError: If a column index in 0..p-1 is missing
    """
    missing = [i for i in range(p) if i not in columns]
    if missing:
        raise ColumnSolveError(
            f"Missing solutions for columns {missing}",
            column=missing[0],
            issue="incomplete assembly"
        )

    matrix = np.empty((p, p))
    for index, vector in columns.items():
        matrix[:, index] = vector
    return matrix


@contextmanager
def column_pool(n_cores: Optional[int] = None,
                pool: Optional[ColumnPool] = None) -> Iterator[ColumnPool]:
    """
    Yield ``pool`` if one is supplied, otherwise a new scoped ColumnPool.

    A supplied pool is left open for its owner; a pool created here is shut
    down when the block exits.
    """
    if pool is not None:
        yield pool
        return
    with ColumnPool(n_workers=n_cores) as scoped:
        yield scoped
