from datetime import timedelta

from pricewatch.orchestrator.scheduler import JobScheduler
from pricewatch.utils.config import Config, ScheduleConfig


class DummyMonitor:
    async def run_crawl_cycle(self, *args, **kwargs):
        return None


def test_scheduler_sets_guardrail_defaults():
    config = Config(schedule=ScheduleConfig(misfire_grace_time_seconds=120))
    scheduler = JobScheduler(DummyMonitor(), config)
    scheduler.configure_jobs()

    assert scheduler.scheduler._job_defaults["coalesce"] is True
    assert scheduler.scheduler._job_defaults["max_instances"] == 1
    assert scheduler.scheduler._job_defaults["misfire_grace_time"] == 120

    for job in scheduler.get_jobs():
        assert job.max_instances == 1
        assert job.coalesce is True


def test_crawl_runs_hourly_by_default():
    scheduler = JobScheduler(DummyMonitor(), Config())
    scheduler.configure_jobs()

    jobs = scheduler.get_jobs()
    assert [job.id for job in jobs] == ["crawl_cycle"]
    assert jobs[0].trigger.interval == timedelta(hours=1)


def test_run_on_start_adds_initial_crawl():
    config = Config(schedule=ScheduleConfig(crawl_interval_hours=2, run_on_start=True))
    scheduler = JobScheduler(DummyMonitor(), config)
    scheduler.configure_jobs()

    jobs = {job.id: job for job in scheduler.get_jobs()}
    assert set(jobs) == {"crawl_cycle", "crawl_on_start"}
    assert jobs["crawl_cycle"].trigger.interval == timedelta(hours=2)
