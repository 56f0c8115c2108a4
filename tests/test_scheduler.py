from kotel.scheduler import Scheduler
from kotel.task import MethodTask, Task


class FakeClock:
    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


class Recorder(Task):
    def __init__(self, name, log, clock, interval=None):
        super().__init__(clock)
        self.name = name
        self.log = log
        self.interval = interval

    def run(self, cur_time):
        self.log.append((self.name, cur_time))
        if self.interval is not None:
            self.resume_at(cur_time + self.interval)


def make(clock):
    log = []
    a = Recorder("a", log, clock, interval=10)
    b = Recorder("b", log, clock, interval=3)
    return log, a, b, Scheduler([a, b], clock)


def test_runs_all_due_tasks_first():
    clock = FakeClock()
    log, a, b, sched = make(clock)
    assert sched.run() is True
    assert sorted(log) == [("a", 0), ("b", 0)]


def test_nothing_due_returns_false():
    clock = FakeClock()
    log, a, b, sched = make(clock)
    sched.run()
    log.clear()
    clock.now = 2
    assert sched.run() is False
    assert log == []


def test_runs_in_order_of_schedule():
    clock = FakeClock()
    log, a, b, sched = make(clock)
    sched.run()
    log.clear()
    clock.now = 3
    sched.run()
    assert log == [("b", 3)]
    log.clear()
    clock.now = 10
    sched.run()
    assert log == [("b", 10), ("a", 10)]


def test_stopped_task_is_not_run():
    clock = FakeClock()
    log, a, b, sched = make(clock)
    sched.run()
    a.stop()
    log.clear()
    clock.now = 100
    sched.run()
    assert [name for name, _ in log] == ["b"]


def test_external_resume_at_is_picked_up():
    clock = FakeClock()
    log = []
    a = Recorder("a", log, clock)
    sched = Scheduler([a], clock)
    sched.run()
    assert log == [("a", 0)]
    a.resume_at(50)
    clock.now = 49
    assert sched.run() is False
    clock.now = 50
    assert sched.run() is True
    assert log == [("a", 0), ("a", 50)]


def test_method_task_in_scheduler():
    clock = FakeClock()
    calls = []

    def tick(now):
        calls.append(now)
        return 5

    task = MethodTask(tick, clock)
    sched = Scheduler([task], clock)
    results = []
    for now in range(0, 11):
        clock.now = now
        results.append(sched.run())
    assert results == [
        True, False, False, False, False,
        True, False, False, False, False,
        True,
    ]
    assert calls == [0, 5, 10]
    assert task.scheduled_time == 15


def test_iteration_yields_all_tasks():
    clock = FakeClock()
    log, a, b, sched = make(clock)
    sched.run()
    assert set(sched) == {a, b}
    assert len(list(sched)) == 2