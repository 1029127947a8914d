import time

from tranlib.timer import Timer


def test_ids_increase():
    first = Timer(lambda: None, 0.0)
    second = Timer(lambda: None, 0.0)
    assert second.id > first.id


def test_repeat_depends_on_interval():
    assert Timer(lambda: None, 0.0, 1.5).is_repeat
    assert not Timer(lambda: None, 0.0).is_repeat
    assert not Timer(lambda: None, 0.0, 0.0).is_repeat


def test_run_invokes_callback():
    calls = []
    Timer(lambda: calls.append("x"), 0.0).run()
    assert calls == ["x"]


def test_restart_repeating_adds_interval():
    timer = Timer(lambda: None, 10.0, 2.5)
    timer.restart(100.0)
    assert timer.when == 102.5


def test_restart_single_shot_uses_current_time():
    timer = Timer(lambda: None, 10.0)
    before = time.monotonic()
    timer.restart(100.0)
    after = time.monotonic()
    assert before <= timer.when <= after


def test_ordering_by_due_time():
    early = Timer(lambda: None, 1.0)
    late = Timer(lambda: None, 2.0)
    assert early < late
    assert late > early
    assert not late < early