"""
Pytest configuration for Django tests.
"""
import os

# pytest-django reads the settings module from pyproject.toml; keep the
# fallback for running the suite with a bare pytest invocation.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'caffico.settings')
