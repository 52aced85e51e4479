import logging

from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings
from django.db import IntegrityError, transaction
from django.http import HttpResponse
from rest_framework import status, views
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from .errors import JobConflictError, PipelineError, VideoNotFound
from .models import Job
from .pipeline import run_job
from .s3 import master_key, object_url
from .serializers import UploadCreateSerializer, VideoStatusSerializer, VideoSummarySerializer
from .status import delete_video, list_videos, resolve_status
from .tasks import process_upload
from .utils import save_uploaded_file, video_id_for

logger = logging.getLogger(__name__)


class PublicAPIView(views.APIView):
    permission_classes = [AllowAny]
    authentication_classes = []


def _storage_failure(action: str, video_id: str | None = None) -> Response:
    logger.exception("Storage error while trying to %s %s", action, video_id or "")
    return Response({"detail": f"Could not {action} video(s)."}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


class PingView(PublicAPIView):
    def get(self, request):
        return HttpResponse("pong", content_type="text/plain")


class UploadView(PublicAPIView):
    """
    Accepts a multipart `video` upload, stages it under HLS_UPLOAD_ROOT,
    registers a Job and hands it to the worker (or runs it inline when
    HLS_PROCESS_INLINE is set).
    """

    def post(self, request):
        ser = UploadCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        upload = ser.validated_data["video"]

        staged = save_uploaded_file(upload)
        video_id = video_id_for(staged)
        try:
            with transaction.atomic():
                job = Job.objects.create(
                    video_id=video_id,
                    input_path=str(staged),
                    original_name=upload.name or "",
                )
        except IntegrityError:
            staged.unlink(missing_ok=True)
            return Response({"detail": f"Video {video_id} already exists."}, status=status.HTTP_409_CONFLICT)

        logger.info("Accepted upload %s as %s", upload.name, video_id)

        if settings.HLS_PROCESS_INLINE:
            try:
                run_job(job)
            except JobConflictError as e:
                return Response({"detail": str(e)}, status=status.HTTP_409_CONFLICT)
            except PipelineError:
                return Response({"detail": "Conversion failed"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
            except (ClientError, BotoCoreError):
                return _storage_failure("process", video_id)
        else:
            process_upload.delay(video_id)  # queue background processing

        return Response(
            {
                "status": "processing",
                "videoId": video_id,
                "masterPlaylistUrl": object_url(master_key(video_id)),
            },
            status=status.HTTP_202_ACCEPTED,
        )


class VideoStatusView(PublicAPIView):
    def get(self, request, video_id):
        try:
            result = resolve_status(video_id)
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except (ClientError, BotoCoreError):
            return _storage_failure("look up", video_id)
        return Response(VideoStatusSerializer(result).data)


class VideoListView(PublicAPIView):
    def get(self, request):
        try:
            videos = list_videos()
        except (ClientError, BotoCoreError):
            return _storage_failure("list")
        return Response(VideoSummarySerializer(videos, many=True).data)


class VideoDetailView(PublicAPIView):
    def delete(self, request, video_id):
        try:
            deleted = delete_video(video_id)
        except ValueError as e:
            return Response({"detail": str(e)}, status=status.HTTP_400_BAD_REQUEST)
        except VideoNotFound as e:
            return Response({"detail": str(e)}, status=status.HTTP_404_NOT_FOUND)
        except (ClientError, BotoCoreError):
            return _storage_failure("delete", video_id)

        return Response({"status": "deleted", "videoId": video_id, "deleted": deleted})
