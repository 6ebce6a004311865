"""
ASGI config for the King & Queen contest project
================================================

Exposes the ASGI callable as a module-level variable named ``application``
for Uvicorn, Daphne or Hypercorn deployments.
"""

import os
from django.core.asgi import get_asgi_application  # pyright: ignore[reportMissingModuleSource]

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'kingqueen_project.settings')

application = get_asgi_application()
