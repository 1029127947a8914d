"""A pool of worker threads that run queued tasks in parallel."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable

Task = Callable[[], object]


class ConcurrentTaskQueue:
    """Runs submitted callables on a fixed number of worker threads."""

    def __init__(self, thread_num: int, name: str) -> None:
        if thread_num <= 0:
            raise ValueError("thread_num must be positive")
        self._name = name
        self._tasks: deque[Task] = deque()
        self._cond = threading.Condition()
        self._stop = False
        self._threads = [
            threading.Thread(
                target=self._worker, name=f"{name}{index}", daemon=True
            )
            for index in range(thread_num)
        ]
        for thread in self._threads:
            thread.start()

    @property
    def name(self) -> str:
        """The name given to the queue."""
        return self._name

    def run_task_in_queue(self, task: Task) -> None:
        """Queue ``task`` to run on one of the worker threads."""
        with self._cond:
            self._tasks.append(task)
            self._cond.notify()

    def task_count(self) -> int:
        """Number of tasks waiting to be picked up."""
        with self._cond:
            return len(self._tasks)

    def stop(self) -> None:
        """Stop the workers and wait for them to finish their current task."""
        with self._cond:
            if self._stop:
                return
            self._stop = True
            self._cond.notify_all()
        current = threading.current_thread()
        for thread in self._threads:
            if thread is not current:
                thread.join()

    def __enter__(self) -> ConcurrentTaskQueue:
        return self

    def __exit__(self, *args) -> None:
        self.stop()

    def _worker(self) -> None:
        while not self._stop:
            with self._cond:
                while not self._stop and not self._tasks:
                    self._cond.wait()
                if not self._tasks:
                    continue
                task = self._tasks.popleft()
            task()