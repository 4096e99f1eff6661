"""
Root pytest configuration for the Django project.

Settings come from DJANGO_SETTINGS_MODULE (pyproject.toml); this module
makes sure Django is set up before collection. App-specific fixtures are
defined in each app's tests/conftest.py.
"""

import os

import django

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()
