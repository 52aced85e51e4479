from django.conf import settings
from django.urls import include, path, re_path
from django.views.static import serve

urlpatterns = [
    path("", include("api.urls")),
]

if settings.DEBUG:
    # Local output trees, handy for playing a package before it is published
    urlpatterns += [
        re_path(r"^outputs/(?P<path>.*)$", serve, {"document_root": settings.HLS_OUTPUT_ROOT}),
    ]
