"""
WSGI config for caffico project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'caffico.settings')

application = get_wsgi_application()
