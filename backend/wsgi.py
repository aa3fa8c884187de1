# Overview: WSGI entrypoint (gunicorn wsgi:app, or FLASK_APP=wsgi.py for the flask CLI).

from paycom_merchant import create_app

app = create_app()
