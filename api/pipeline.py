"""
Rendition pipeline: encode every configured rendition of one input, then
write the master playlist, then publish the tree.

The master playlist is only written once every rendition has succeeded,
and it is the last object published, so its presence means the whole tree
is in storage.
"""
import logging
import shutil
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path

from django.conf import settings

from . import encoder, s3
from .errors import EncodeError, JobConflictError, PipelineError
from .models import Job
from .playlist import write_master
from .publisher import publish
from .renditions import RenditionSpec, get_renditions

logger = logging.getLogger(__name__)


@dataclass
class RenditionResult:
    spec: RenditionSpec
    playlist_path: Path | None = None
    error: EncodeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.playlist_path is not None


@dataclass
class MasterPlaylist:
    path: Path
    text: str
    results: list[RenditionResult] = field(default_factory=list)


class RenditionPipeline:
    """
    Runs the encoder once per rendition. Sequential unless max_workers > 1,
    in which case a pool bounded by max_workers runs encodes side by side.
    Either way results come back in rendition-table order.
    """

    def __init__(self, renditions=None, encode=None, max_workers: int = 1):
        self.renditions = tuple(renditions) if renditions is not None else get_renditions()
        self.encode = encode or encoder.encode
        self.max_workers = max(1, int(max_workers))

    def _attempt(self, input_path, spec, output_dir) -> RenditionResult:
        try:
            return RenditionResult(spec, playlist_path=self.encode(input_path, spec, output_dir))
        except EncodeError as e:
            return RenditionResult(spec, error=e)

    def _run_sequential(self, input_path, output_dir) -> list[RenditionResult]:
        results = []
        for spec in self.renditions:
            res = self._attempt(input_path, spec, output_dir)
            results.append(res)
            if not res.ok:
                break
        return results

    def _run_pooled(self, input_path, output_dir) -> list[RenditionResult]:
        workers = min(self.max_workers, len(self.renditions))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="encode") as pool:
            futures = [pool.submit(self._attempt, input_path, spec, output_dir) for spec in self.renditions]
            pending = set(futures)
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                if any(f.exception() is not None or not f.result().ok for f in done):
                    # Fail fast: drop encodes that have not started yet
                    for f in pending:
                        f.cancel()
                    break
        return [f.result() for f in futures if f.done() and not f.cancelled()]

    def encode_all(self, input_path, output_dir) -> list[RenditionResult]:
        if self.max_workers > 1 and len(self.renditions) > 1:
            return self._run_pooled(input_path, output_dir)
        return self._run_sequential(input_path, output_dir)

    def run(self, input_path, output_dir) -> MasterPlaylist:
        if not self.renditions:
            raise PipelineError("No renditions configured")
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        results = self.encode_all(input_path, output_dir)
        failed = [r for r in results if not r.ok]
        if failed:
            # Table order decides which failure is reported
            raise failed[0].error
        if len(results) != len(self.renditions):
            raise PipelineError("Not every rendition was attempted")

        path, text = write_master(output_dir, results)
        logger.info("Wrote master playlist %s (%d renditions)", path, len(results))
        return MasterPlaylist(path=path, text=text, results=results)


# -----------------------------------------------------
# Job driver
# -----------------------------------------------------
def output_dir_for(video_id: str) -> Path:
    return Path(settings.HLS_OUTPUT_ROOT) / s3.check_video_id(video_id)


def claim_output_dir(video_id: str) -> Path:
    """
    Reserve the local working directory for a videoId. Refuses ids that
    already have a working directory or a published master playlist.
    """
    if s3.head_object(s3.master_key(video_id)) is not None:
        raise JobConflictError(video_id)
    out = output_dir_for(video_id)
    out.parent.mkdir(parents=True, exist_ok=True)
    try:
        out.mkdir()
    except FileExistsError:
        raise JobConflictError(video_id) from None
    return out


def _update(job: Job, *, status=None, error=None, renditions=None):
    if status:
        job.status = status
    if error is not None:
        job.error = error[:4000]
    if renditions is not None:
        job.renditions = renditions
    job.save(update_fields=["status", "error", "renditions", "updated_at"])


def run_job(job: Job, pipeline: RenditionPipeline | None = None) -> MasterPlaylist:
    """
    Encode, publish, and clean up one job. Marks the job ready or failed;
    failures propagate to the caller.
    """
    pipeline = pipeline or RenditionPipeline(max_workers=settings.HLS_MAX_PARALLEL_RENDITIONS)
    input_path = Path(job.input_path)

    try:
        output_dir = claim_output_dir(job.video_id)
        master = pipeline.run(input_path, output_dir)
        publish(output_dir, s3.video_prefix(job.video_id))
    except JobConflictError:
        # Another run owns (or already published) this videoId; its record stands
        logger.warning("Job %s already claimed or published; not re-running", job.video_id)
        raise
    except PipelineError as e:
        logger.error("Job %s failed: %s", job.video_id, e)
        _update(job, status=Job.Status.FAILED, error=str(e))
        if input_path.exists():
            logger.info("Keeping staged input %s of failed job", input_path)
        raise
    except Exception as e:
        logger.exception("Job %s crashed", job.video_id)
        _update(job, status=Job.Status.FAILED, error=str(e))
        raise

    _update(job, status=Job.Status.READY, error="", renditions=[r.spec.name for r in master.results])

    try:
        input_path.unlink(missing_ok=True)
        logger.info("Removed staged input %s", input_path)
    except OSError as e:
        logger.warning("Could not remove staged input %s: %s", input_path, e)

    if not settings.HLS_KEEP_LOCAL_OUTPUT:
        shutil.rmtree(output_dir, ignore_errors=True)
    return master
