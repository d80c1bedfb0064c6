"""
Gunicorn configuration for production deployment.
"""
import os

# Server socket
# Render uses PORT environment variable (defaults to 10000)
PORT = int(os.environ.get("PORT", 5000))
bind = f"0.0.0.0:{PORT}"
backlog = 2048

# Worker processes
# Without REDIS_URL the write lock only covers one process, so keep a single
# worker and scale with threads instead.
workers = int(os.environ.get("WEB_CONCURRENCY", 1))
worker_class = "gthread"
threads = int(os.environ.get("GUNICORN_THREADS", 8))
timeout = 60
keepalive = 2
graceful_timeout = 30  # Time to wait for workers to finish before killing

# Logging
accesslog = "-"
errorlog = "-"
loglevel = "info"

# Process naming
proc_name = "sheet-sync"


def on_starting(server):
    """Called just before the master process is started."""
    if workers > 1 and not os.environ.get("REDIS_URL"):
        server.log.warning(
            "Running %s workers without REDIS_URL: writes are only serialized "
            "within each worker", workers
        )


def worker_int(worker):
    """Called when a worker receives INT or QUIT signal."""
    import logging
    logging.warning(f"Worker {worker.pid} received INT/QUIT signal")
