"""Bounded worker pool with a single background consumer.

Handlers use the pool to offload fire-and-forget work. Tasks run one at a
time in submission order on a daemon thread. The queue capacity doubles as
admission control: ``submit`` blocks while the queue is full.

Lifecycle::

    UNINITIALIZED --start()--> RUNNING --shutdown()--> CLOSED

Submitting outside RUNNING is a silent no-op (counted as dropped), and
``shutdown`` may be called any number of times.
"""

import queue
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from src.infrastructure.logging.config import get_logger


logger = get_logger(__name__)

Task = Callable[[], None]

# Queued after the last task on shutdown; the consumer exits when it sees it
_STOP = object()


class PoolState(StrEnum):
    """Lifecycle states of a worker pool."""

    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    CLOSED = "closed"


@dataclass
class PoolMetrics:
    """Worker pool counters."""

    submitted: int = 0
    completed: int = 0
    failed: int = 0
    dropped: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            "submitted": self.submitted,
            "completed": self.completed,
            "failed": self.failed,
            "dropped": self.dropped,
        }


class WorkerPool:
    """Fixed-capacity FIFO task queue drained by one consumer thread.

    A task that raises is logged and counted, and the consumer moves on to
    the next task. There is no per-task timeout or cancellation.

    Example:
        >>> pool = WorkerPool.create(10)
        >>> pool.submit(lambda: print("hello"))
        True
        >>> pool.shutdown()
    """

    def __init__(self, capacity: int, name: str = "worker-pool") -> None:
        """Initialize an unstarted pool.

        Args:
            capacity: Maximum number of queued (not yet running) tasks
            name: Name of the consumer thread, also used in log events

        Raises:
            ValueError: If capacity is less than 1
        """
        if capacity < 1:
            raise ValueError(f"Worker pool capacity must be at least 1, got {capacity}")

        self._capacity = capacity
        self._name = name
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=capacity)
        self._lock = threading.Lock()
        self._state = PoolState.UNINITIALIZED
        self._consumer: threading.Thread | None = None
        self._metrics = PoolMetrics()

    @classmethod
    def create(cls, capacity: int, name: str = "worker-pool") -> "WorkerPool":
        """Create a pool and start its consumer."""
        pool = cls(capacity, name=name)
        pool.start()
        return pool

    @property
    def capacity(self) -> int:
        """Queue capacity."""
        return self._capacity

    @property
    def state(self) -> PoolState:
        """Current lifecycle state."""
        return self._state

    @property
    def pending(self) -> int:
        """Approximate number of queued tasks not yet picked up."""
        return self._queue.qsize()

    def start(self) -> None:
        """Start the consumer thread. No-op unless the pool is UNINITIALIZED."""
        with self._lock:
            if self._state is not PoolState.UNINITIALIZED:
                return
            self._consumer = threading.Thread(target=self._drain, name=self._name, daemon=True)
            self._consumer.start()
            self._state = PoolState.RUNNING

        logger.info("worker_pool_started", pool=self._name, capacity=self._capacity)

    def submit(self, task: Task) -> bool:
        """Enqueue a task for asynchronous execution.

        Blocks while the queue is full.

        Args:
            task: Zero-argument callable; its return value is ignored

        Returns:
            True if the task was queued, False if the pool is not running
        """
        with self._lock:
            if self._state is not PoolState.RUNNING:
                self._metrics.dropped += 1
                logger.debug("worker_task_dropped", pool=self._name, state=str(self._state))
                return False
            # Put under the lock: the stop marker always lands after accepted tasks
            self._queue.put(task)
            self._metrics.submitted += 1
        return True

    def shutdown(self, wait: bool = True, timeout: float | None = None) -> None:
        """Close the pool; queued tasks still run before the consumer exits.

        Args:
            wait: Join the consumer thread before returning
            timeout: Maximum seconds to wait when ``wait`` is True
        """
        with self._lock:
            if self._state is not PoolState.RUNNING:
                if self._state is PoolState.UNINITIALIZED:
                    self._state = PoolState.CLOSED
                return
            self._state = PoolState.CLOSED
            self._queue.put(_STOP)

        logger.info("worker_pool_closing", pool=self._name, pending=self.pending)

        consumer = self._consumer
        if wait and consumer is not None and consumer is not threading.current_thread():
            consumer.join(timeout)
            if consumer.is_alive():
                logger.warning("worker_pool_shutdown_timeout", pool=self._name, timeout=timeout)
                return

        logger.info("worker_pool_closed", pool=self._name, **self._metrics.to_dict())

    def get_metrics(self) -> dict[str, Any]:
        """Get current pool metrics plus state and queue depth."""
        return {
            "state": str(self._state),
            "capacity": self._capacity,
            "pending": self.pending,
            **self._metrics.to_dict(),
        }

    def _drain(self) -> None:
        while True:
            task = self._queue.get()
            try:
                if task is _STOP:
                    return
                self._run(task)
            finally:
                self._queue.task_done()

    def _run(self, task: Task) -> None:
        start_time = time.perf_counter()
        try:
            task()
        except Exception as e:
            self._metrics.failed += 1
            logger.exception(
                "worker_task_failed",
                pool=self._name,
                task=getattr(task, "__name__", repr(task)),
                error=str(e),
            )
            return

        self._metrics.completed += 1
        logger.debug(
            "worker_task_completed",
            pool=self._name,
            duration=f"{time.perf_counter() - start_time:.3f}s",
        )
