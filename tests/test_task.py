import pytest

from kotel.task import DISABLED_TASK, MethodTask, Task


class FakeClock:
    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


def test_abstract_task_cannot_be_created():
    with pytest.raises(TypeError):
        Task(FakeClock())


def test_new_task_is_due_immediately():
    task = MethodTask(lambda now: 10, FakeClock())
    assert task.scheduled_time == 0


def test_task_is_disabled_while_running():
    observed = {}
    holder = {}

    def step(now):
        observed["now"] = now
        observed["scheduled"] = holder["task"].scheduled_time
        return 10

    task = MethodTask(step, FakeClock())
    holder["task"] = task
    assert task.scheduled_time == 0
    task.resume(5)
    assert observed["now"] == 5
    assert observed["scheduled"] == DISABLED_TASK
    assert task.scheduled_time == 15


def test_resume_with_reschedule():
    task = MethodTask(lambda now: 25, FakeClock())
    task.resume(100)
    assert task.scheduled_time == 100 + 25


def test_stop_and_resume_at():
    task = MethodTask(lambda now: 10, FakeClock())
    task.resume_at(40)
    assert task.scheduled_time == 40
    task.stop()
    assert task.scheduled_time == DISABLED_TASK


def test_run_time_rises_and_decays():
    clock = FakeClock()
    cost = {"value": 50}

    def step(now):
        clock.now += cost["value"]
        return 10

    task = MethodTask(step, clock)
    task.resume(0)
    assert task.run_time == 50
    cost["value"] = 0
    task.resume(0)
    assert task.run_time == 50 - 50 // 10


def test_method_task_uses_returned_delay():
    seen = []

    def step(now):
        seen.append(now)
        return 100

    task = MethodTask(step, FakeClock())
    task.resume(7)
    assert seen == [7]
    assert task.scheduled_time == 7 + 100


def test_wake_up_makes_task_due():
    task = MethodTask(lambda now: 10, FakeClock())
    task.resume(50)
    task.wake_up()
    assert task.scheduled_time == 0