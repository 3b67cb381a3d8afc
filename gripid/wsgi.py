"""
WSGI config for gripid project.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'gripid.settings')

application = get_wsgi_application()
