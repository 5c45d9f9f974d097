"""
Gunicorn configuration for the mood journal progress API.

Run with:  gunicorn -c gunicorn.conf.py moodjournal.main:app

Env vars that override defaults:
  PORT       TCP port to bind (default: 8000)
  WORKERS    number of worker processes (default: 2)
  LOG_LEVEL  gunicorn log level (default: info)
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Recomputes for one user are serialised by a row lock on the profile, so
# several workers are safe against the same database.
workers = int(os.environ.get("WORKERS", "2"))

worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# A refresh-all sweep over many users can run long.
timeout = 120

loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
