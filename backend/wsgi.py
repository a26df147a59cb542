# backend/wsgi.py
from pavan import create_app

app = create_app()
