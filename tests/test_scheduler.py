import threading
from unittest.mock import Mock

from amenibook.scheduler import BOOKING_TASK, HEALTH_TASK, ScheduledTask, Scheduler


class TestScheduledTask:

    def test_runs_repeatedly(self):
        calls = []
        done = threading.Event()

        def action():
            calls.append(1)
            if len(calls) >= 3:
                done.set()

        task = ScheduledTask("tick", 0.01, action)
        task.start()
        try:
            assert done.wait(2)
            assert task.is_running
        finally:
            task.stop(1)

        assert not task.is_running

    def test_survives_action_errors(self):
        calls = []
        done = threading.Event()

        def action():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("boom")
            done.set()

        task = ScheduledTask("flaky", 0.01, action)
        task.start()
        try:
            assert done.wait(2)
        finally:
            task.stop(1)


class TestScheduler:

    def test_trigger_runs_pass_and_returns_result(self):
        process_pass = Mock(return_value={"processed": 2, "booked": 1, "failed": 0})
        scheduler = Scheduler(process_pass)

        assert scheduler.trigger() == {"processed": 2, "booked": 1, "failed": 0}
        process_pass.assert_called_once()

    def test_tick_skips_while_pass_in_flight(self):
        process_pass = Mock(return_value={})
        scheduler = Scheduler(process_pass)

        scheduler._pass_lock.acquire()
        try:
            assert scheduler._tick() is None
        finally:
            scheduler._pass_lock.release()

        process_pass.assert_not_called()

        scheduler._tick()
        process_pass.assert_called_once()

    def test_passes_never_overlap(self):
        running = threading.Event()
        release = threading.Event()
        overlap = []
        active = []

        def process_pass():
            if active:
                overlap.append(True)
            active.append(True)
            running.set()
            release.wait(2)
            active.pop()
            return {}

        scheduler = Scheduler(process_pass)
        manual = threading.Thread(target=scheduler.trigger)
        manual.start()
        assert running.wait(2)

        assert scheduler._tick() is None

        release.set()
        manual.join(2)
        assert overlap == []

    def test_task_status(self):
        scheduler = Scheduler(Mock(return_value={}), interval_minutes=60, health_interval_minutes=60)
        assert scheduler.get_task_status() == {}

        scheduler.start()
        try:
            assert scheduler.get_task_status() == {BOOKING_TASK: True, HEALTH_TASK: True}
        finally:
            scheduler.stop(1)

        assert scheduler.get_task_status() == {}

    def test_second_start_keeps_running_tasks(self):
        scheduler = Scheduler(Mock(return_value={}), interval_minutes=60, health_interval_minutes=60)

        scheduler.start()
        tasks = dict(scheduler._tasks)
        try:
            scheduler.start()
            assert all(scheduler._tasks[name] is task for name, task in tasks.items())
        finally:
            scheduler.stop(1)

        assert not any(task.is_running for task in tasks.values())
