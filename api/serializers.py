from rest_framework import serializers

from .errors import IntakeError
from .utils import validate_upload


class UploadCreateSerializer(serializers.Serializer):
    video = serializers.FileField(allow_empty_file=True)

    def validate_video(self, value):
        try:
            validate_upload(value)
        except IntakeError as e:
            raise serializers.ValidationError(str(e))
        return value


class _CompactSerializer(serializers.Serializer):
    """Leaves out fields that have no value (e.g. url of a video still processing)."""

    def to_representation(self, instance):
        data = super().to_representation(instance)
        return {k: v for k, v in data.items() if v is not None}


class VideoStatusSerializer(_CompactSerializer):
    status = serializers.CharField()
    videoId = serializers.CharField(source="video_id")
    masterPlaylistUrl = serializers.CharField(source="master_playlist_url", allow_null=True)
    updatedAt = serializers.DateTimeField(source="updated_at", allow_null=True)
    size = serializers.IntegerField(allow_null=True)


class VideoSummarySerializer(_CompactSerializer):
    videoId = serializers.CharField(source="video_id")
    masterPlaylistUrl = serializers.CharField(source="master_playlist_url")
    updatedAt = serializers.DateTimeField(source="updated_at", allow_null=True)
    size = serializers.IntegerField(allow_null=True)
