from frontier.services.scheduler import TaskScheduler


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_tasks_run_once_when_due() -> None:
    clock = FakeClock()
    scheduler = TaskScheduler(clock)
    calls = []
    scheduler.schedule("refill_0", 1.0, "run_a", lambda: calls.append("refill_0"))

    assert scheduler.run_due() == 0
    clock.now += 1.0
    assert scheduler.run_due() == 1
    assert scheduler.run_due() == 0
    assert calls == ["refill_0"]


def test_rescheduling_a_key_replaces_the_pending_task() -> None:
    clock = FakeClock()
    scheduler = TaskScheduler(clock)
    calls = []
    scheduler.schedule("banner", 1.0, "run_a", lambda: calls.append("first"))
    scheduler.schedule("banner", 3.0, "run_a", lambda: calls.append("second"))

    assert scheduler.run_due(now=102.0) == 0
    assert scheduler.run_due(now=103.0) == 1
    assert calls == ["second"]


def test_tasks_run_earliest_first() -> None:
    scheduler = TaskScheduler(FakeClock())
    calls = []
    scheduler.schedule("late", 2.0, "run_a", lambda: calls.append("late"))
    scheduler.schedule("early", 0.5, "run_a", lambda: calls.append("early"))

    scheduler.run_due(now=200.0)

    assert calls == ["early", "late"]


def test_cancel_and_cancel_run() -> None:
    scheduler = TaskScheduler(FakeClock())
    scheduler.schedule("refill_0", 1.0, "run_a", lambda: None)
    scheduler.schedule("refill_1", 1.0, "run_a", lambda: None)
    scheduler.schedule("banner", 1.0, "run_b", lambda: None)

    assert scheduler.cancel("refill_0") is True
    assert scheduler.cancel("refill_0") is False
    assert scheduler.cancel_run("run_a") == 1
    assert [task.key for task in scheduler.pending()] == ["banner"]


def test_callback_cancelling_a_later_task_skips_it() -> None:
    scheduler = TaskScheduler(FakeClock())
    calls = []
    scheduler.schedule("first", 0.0, "run_a", lambda: scheduler.cancel("second"))
    scheduler.schedule("second", 0.5, "run_a", lambda: calls.append("second"))

    assert scheduler.run_due(now=200.0) == 1
    assert calls == []
    assert not scheduler.is_pending("second")
