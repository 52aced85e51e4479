from django.db import models


class Job(models.Model):
    """
    Local record of one upload being turned into an HLS package.

    Bookkeeping and a videoId collision guard only: readiness is always
    answered from storage, never from this table.
    """
    class Status(models.TextChoices):
        PROCESSING = "processing"
        READY = "ready"
        FAILED = "failed"

    video_id = models.CharField(max_length=255, unique=True)
    input_path = models.CharField(max_length=1024)    # staged upload, deleted after publish
    original_name = models.CharField(max_length=255, blank=True, default="")
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PROCESSING)
    renditions = models.JSONField(default=list, blank=True)  # names produced, ascending quality
    error = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.video_id} ({self.status})"
