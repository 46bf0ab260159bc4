from apscheduler.schedulers.background import BackgroundScheduler

from . import config
from .db import SessionLocal
from .services import retire_past_sales
from .utils import logger


def retire_past_sales_job():
    db = SessionLocal()
    try:
        retire_past_sales(db)
    except Exception as e:
        logger.exception("Retiring past sales failed: %s", e)
    finally:
        db.close()


scheduler = BackgroundScheduler()
scheduler.add_job(retire_past_sales_job, 'interval', minutes=config.RETIRE_INTERVAL_MINUTES,
                  id="retire_past_sales", replace_existing=True)


def start_scheduler():
    if not scheduler.running:
        scheduler.start()
        logger.info("Scheduler started")


def stop_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
