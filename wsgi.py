"""
Production WSGI entry point for the care engine API.

Runs with ProdConfig unless APP_CONFIG says otherwise. Gunicorn imports
this module and serves the top-level `app`:

    gunicorn -w 2 -k gthread -b 0.0.0.0:$PORT wsgi:app
"""

from app import create_app

app = create_app()
