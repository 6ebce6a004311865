"""
Main URL Router for the King & Queen contest
============================================

Routes the JSON API under /api/ and the Django admin under /admin/.
Uploaded candidate photos are served from MEDIA_URL in development.
"""

from django.contrib import admin  # pyright: ignore[reportMissingModuleSource]
from django.urls import path, include  # pyright: ignore[reportMissingModuleSource]
from django.conf import settings  # pyright: ignore[reportMissingModuleSource]
from django.conf.urls.static import static  # pyright: ignore[reportMissingModuleSource]

urlpatterns = [
    # Django admin panel
    path('admin/', admin.site.urls),

    # Contest API (vote, check, results, candidates, settings, admin accounts)
    path('api/', include('contest.urls')),
]

# Serve uploaded photos in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
