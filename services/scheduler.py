#Description: Background scheduler running the control-loop cycle on a fixed, non-overlapping interval.
from apscheduler.schedulers.background import BackgroundScheduler

from utils.logging import logger


def create_scheduler() -> BackgroundScheduler:
    return BackgroundScheduler(timezone="UTC")


def schedule_interval(scheduler: BackgroundScheduler, job, seconds: int, job_id: str):
    # a tick that lands while the previous run is still going is skipped, missed ticks collapse into one
    scheduler.add_job(job, "interval", seconds=seconds, id=job_id, max_instances=1, coalesce=True,
                      replace_existing=True)
    if not scheduler.running:
        scheduler.start()
    logger.info(f"Scheduled {job_id} every {seconds}s.")
    return scheduler


def shutdown_scheduler(scheduler: BackgroundScheduler | None):
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped.")
