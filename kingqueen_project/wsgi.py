"""
WSGI config for the King & Queen contest project
================================================

Exposes the WSGI callable as a module-level variable named ``application``,
used by Gunicorn or any other WSGI server in production.
"""

import os
from django.core.wsgi import get_wsgi_application  # pyright: ignore[reportMissingModuleSource]

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'kingqueen_project.settings')

application = get_wsgi_application()
