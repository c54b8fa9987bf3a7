"""
Celery worker app for offline garment analysis.

Analysis tasks go to their own queue so a worker can be sized for holding
several decoded photos at once. Limits come from settings; the soft limit
leaves a minute for the task to report which photos failed.
"""
import logging

from celery import Celery
from celery.signals import task_failure, task_postrun, task_prerun

from wardrobe_vision.core.config import settings

logger = logging.getLogger(__name__)

ANALYSIS_TASKS = "wardrobe_vision.tasks.analysis_tasks"

celery_app = Celery(
    "wardrobe_vision",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[ANALYSIS_TASKS],
)

hard_limit = settings.ANALYSIS_TASK_TIME_LIMIT_SECONDS

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    enable_utc=True,
    timezone="UTC",

    # A task killed mid-batch is redelivered rather than lost
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_track_started=True,
    task_time_limit=hard_limit,
    task_soft_time_limit=max(hard_limit - 60, 1),

    # PROGRESS meta and the final item summaries
    result_expires=settings.ANALYSIS_RESULT_TTL_SECONDS,
    result_extended=True,

    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=10,  # model weights and cv2 buffers fragment memory

    task_default_queue=settings.ANALYSIS_QUEUE,
    task_routes={f"{ANALYSIS_TASKS}.*": {"queue": settings.ANALYSIS_QUEUE}},
    broker_connection_retry_on_startup=True,
)


@task_prerun.connect
def log_task_start(task_id=None, task=None, args=None, kwargs=None, **extra):
    logger.info(f"🧵 {task.name} [{task_id}] started")


@task_postrun.connect
def log_task_end(task_id=None, task=None, state=None, **extra):
    logger.info(f"🧵 {task.name} [{task_id}] finished: {state}")


@task_failure.connect
def log_task_failure(sender=None, task_id=None, exception=None, einfo=None, **extra):
    logger.error(f"❌ {sender.name} [{task_id}] failed: {exception}", exc_info=einfo.exc_info if einfo else False)
