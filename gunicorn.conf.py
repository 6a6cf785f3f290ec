"""
Gunicorn configuration: Uvicorn workers serving crm.main:app.
"""

import multiprocessing
import os

bind = os.getenv("BIND", "0.0.0.0:8000")
backlog = 2048

# Rate limiting is per worker; keep the count predictable
workers = int(os.getenv("WORKERS", multiprocessing.cpu_count() + 1))
worker_class = "uvicorn.workers.UvicornWorker"
max_requests = 10000
max_requests_jitter = 1000
timeout = 60
keepalive = 5
graceful_timeout = 30

proc_name = "crm-dashboard-api"

# structlog renders application logs; gunicorn only writes its own
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
accesslog = None


def post_fork(server, worker):
    server.log.info("Worker spawned (pid: %s)", worker.pid)


def worker_abort(worker):
    worker.log.warning("Worker aborted (pid: %s)", worker.pid)
