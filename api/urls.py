from django.urls import path
from .views import PingView, UploadView, VideoDetailView, VideoListView, VideoStatusView

urlpatterns = [
    path("ping", PingView.as_view(), name="ping"),
    path("upload", UploadView.as_view(), name="upload"),
    path("videos", VideoListView.as_view(), name="video_list"),
    path("videos/<str:video_id>", VideoDetailView.as_view(), name="video_detail"),
    path("videos/<str:video_id>/status", VideoStatusView.as_view(), name="video_status"),
]
