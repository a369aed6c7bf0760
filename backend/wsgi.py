# backend/wsgi.py
from sahara import create_app

app = create_app()
