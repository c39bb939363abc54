"""Background worker tests."""

import threading

from app.services.background import BackgroundWorker


def test_tasks_run_in_submission_order() -> None:
    worker = BackgroundWorker("test-worker")
    worker.start()
    seen: list[int] = []

    for value in range(5):
        worker.submit(seen.append, value)

    assert worker.drain(5) is True
    assert seen == [0, 1, 2, 3, 4]
    worker.stop()
    assert worker.is_running is False


def test_tasks_wait_in_queue_until_started() -> None:
    worker = BackgroundWorker("test-worker")
    seen: list[int] = []

    worker.submit(seen.append, 1)

    assert worker.is_running is False
    assert worker.pending == 1
    assert worker.drain(0.05) is False
    assert seen == []

    worker.start()
    assert worker.drain(5) is True
    assert seen == [1]
    assert worker.pending == 0
    worker.stop()


def test_failing_task_does_not_stop_the_worker() -> None:
    worker = BackgroundWorker("test-worker")
    worker.start()
    seen: list[str] = []

    def _boom() -> None:
        raise RuntimeError("boom")

    worker.submit(_boom)
    worker.submit(seen.append, "after")

    assert worker.drain(5) is True
    assert seen == ["after"]
    assert worker.is_running is True
    worker.stop()


def test_drain_times_out_while_a_task_is_blocked() -> None:
    worker = BackgroundWorker("test-worker")
    worker.start()
    release = threading.Event()
    worker.submit(release.wait, 5)
    threads_before = threading.active_count()

    for _ in range(5):
        assert worker.drain(0.01) is False

    assert threading.active_count() == threads_before
    release.set()
    assert worker.drain(5) is True
    worker.stop()


def test_stop_without_start_is_a_no_op() -> None:
    worker = BackgroundWorker("test-worker")
    worker.stop()
    assert worker.is_running is False
