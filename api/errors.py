"""Failure taxonomy for the rendition pipeline.

Every error a job can end in derives from PipelineError, so callers that
only care about "the job failed" can catch one class.
"""


class PipelineError(Exception):
    """A job could not produce or publish its package."""


class IntakeError(PipelineError):
    """The upload was rejected before any job started."""


class EncodeError(PipelineError):
    def __init__(self, rendition: str, detail: str = ""):
        self.rendition = rendition
        self.detail = detail
        msg = f"Encoding failed for rendition {rendition}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class PublishError(PipelineError):
    def __init__(self, key: str, detail: str = "", uploaded: int = 0):
        self.key = key
        self.detail = detail
        self.uploaded = uploaded
        msg = f"Upload failed for {key}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)


class JobConflictError(PipelineError):
    def __init__(self, video_id: str):
        self.video_id = video_id
        super().__init__(f"Video {video_id} already exists")


class VideoNotFound(Exception):
    """No objects exist under a video's key prefix."""

    def __init__(self, video_id: str):
        self.video_id = video_id
        super().__init__(f"Video {video_id} not found")
