import logging

from celery import shared_task

from .models import Job
from .pipeline import run_job

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def process_upload(self, video_id: str) -> dict:
    """
    Turn a staged upload into a published HLS package. No retries: a failed
    job stays failed and its videoId keeps reading as processing.
    """
    job = Job.objects.get(video_id=video_id)
    logger.info("Processing %s (task %s)", video_id, self.request.id)
    master = run_job(job)
    return {"video_id": video_id, "renditions": [r.spec.name for r in master.results]}
