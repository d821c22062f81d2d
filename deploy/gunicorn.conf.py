"""
Gunicorn configuration for the CourseHub API.

    gunicorn -c deploy/gunicorn.conf.py

Each worker builds its own app (and its own pool of DB_POOL_SIZE
connections) through the factory below.
"""
import os
import multiprocessing

wsgi_app = "coursehub.main:create_app()"

# Server socket
bind = f"0.0.0.0:{os.environ.get('PORT', '3000')}"
backlog = 2048

# Worker processes
workers = int(os.environ.get("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"
timeout = 120
keepalive = 5

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process naming
proc_name = "coursehub"

# Server mechanics
daemon = False

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190


def on_starting(server):
    from coursehub.config import configure_logging
    configure_logging(loglevel)
