"""
URL routing for the contest app
===============================

Maps the JSON API to view functions:
- Voting: status check and ballot submission
- Results and leaders
- Candidates and photo upload
- Admin accounts and settings
- Health check

Paths carry no trailing slash, matching the browser client.
"""

from django.urls import path  # pyright: ignore[reportMissingModuleSource]
from . import views

app_name = 'contest'

urlpatterns = [
    # Voting
    path('check', views.check_vote, name='check_vote'),
    path('vote', views.submit_vote, name='submit_vote'),

    # Results
    path('results', views.results, name='results'),
    path('results/summary', views.results_summary, name='results_summary'),

    # Candidates
    path('candidates', views.candidates, name='candidates'),
    path('candidates/<int:candidate_id>', views.candidate_detail, name='candidate_detail'),
    path('upload', views.upload_photo, name='upload_photo'),

    # Admin accounts
    path('admin/login', views.admin_login, name='admin_login'),
    path('admin/register', views.admin_register, name='admin_register'),
    path('admin/me', views.admin_me, name='admin_me'),
    path('admin/password', views.admin_password, name='admin_password'),

    # Settings
    path('settings', views.settings_overview, name='settings'),
    path('settings/voting-open', views.voting_open_setting, name='voting_open'),
    path('settings/results-announced', views.results_announced_setting, name='results_announced'),

    # Health check
    path('health', views.health, name='health'),
]
