# APScheduler Orchestrator
from __future__ import annotations
import logging
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from core.logging import setup_json_logging
from collection.jobs.scan_history import scan_all_connected
from classification.jobs.analyze_videos import analyze_all_children

log = logging.getLogger("runner")

def safe(fn):
    def _wrap():
        try:
            fn()
        except Exception:
            log.exception("Job failed: %s", getattr(fn, "__name__", "unknown"))
    _wrap.__name__ = getattr(fn, "__name__", "job")
    return _wrap

def build_scheduler() -> BlockingScheduler:
    sched = BlockingScheduler(timezone="UTC")
    # every 60 minutes at minute 0
    sched.add_job(safe(scan_all_connected), CronTrigger(minute="0"), id="scan_history")
    # at minute 30
    sched.add_job(safe(analyze_all_children), CronTrigger(minute="30"), id="analyze_videos")
    return sched

if __name__ == "__main__":
    setup_json_logging()
    sched = build_scheduler()
    log.info("Scheduler starting (UTC)...")
    try:
        sched.start()
    except (KeyboardInterrupt, SystemExit):
        log.info("Scheduler stopped.")
