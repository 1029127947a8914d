import threading

import pytest

from tranlib.task_queue import ConcurrentTaskQueue


def test_runs_all_tasks():
    results = []
    lock = threading.Lock()
    done = threading.Event()
    total = 50

    def make(value):
        def task():
            with lock:
                results.append(value)
                if len(results) == total:
                    done.set()

        return task

    with ConcurrentTaskQueue(4, "worker") as queue:
        for value in range(total):
            queue.run_task_in_queue(make(value))
        assert done.wait(5)
        assert queue.task_count() == 0
    assert sorted(results) == list(range(total))


def test_name_is_kept():
    queue = ConcurrentTaskQueue(1, "pool")
    try:
        assert queue.name == "pool"
    finally:
        queue.stop()


def test_threads_are_named_after_queue():
    seen = []
    done = threading.Event()

    def task():
        seen.append(threading.current_thread().name)
        done.set()

    with ConcurrentTaskQueue(2, "named") as queue:
        queue.run_task_in_queue(task)
        assert done.wait(5)
        assert queue.task_count() == 0
        expected = {f"{queue.name}0", f"{queue.name}1"}
    assert expected == {"named0", "named1"}
    assert seen[0] in expected


def test_zero_threads_rejected():
    with pytest.raises(ValueError):
        ConcurrentTaskQueue(0, "bad")


def test_task_count_counts_waiting_tasks():
    release = threading.Event()
    started = threading.Event()

    def blocker():
        started.set()
        release.wait(5)

    queue = ConcurrentTaskQueue(1, "count")
    try:
        queue.run_task_in_queue(blocker)
        assert started.wait(5)
        queue.run_task_in_queue(lambda: None)
        queue.run_task_in_queue(lambda: None)
        assert queue.task_count() == 2
    finally:
        release.set()
        queue.stop()


def test_tasks_after_stop_are_not_run():
    ran = []
    queue = ConcurrentTaskQueue(2, "stopped")
    queue.stop()
    queue.stop()
    queue.run_task_in_queue(lambda: ran.append(1))
    assert queue.task_count() == 1
    assert ran == []