"""
Gunicorn configuration file for BookOn
Handles worker crashes, timeouts, and graceful shutdowns

- Timeout must cover the Stripe client's network retries (STRIPE_MAX_NETWORK_RETRIES)
- Worker count auto-scales based on CPU cores
- All settings can be overridden via environment variables
"""
import multiprocessing
import os

# Server socket
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
backlog = 2048

# Worker processes
workers = int(os.environ.get("GUNICORN_WORKERS", multiprocessing.cpu_count() * 2 + 1))
worker_class = "sync"
timeout = int(os.environ.get("GUNICORN_TIMEOUT", 60))
graceful_timeout = 30
keepalive = 5

# Restart workers periodically, with jitter so they don't all restart at once
max_requests = 1000
max_requests_jitter = 50

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("GUNICORN_LOG_LEVEL", "info")
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'
capture_output = True

proc_name = "bookon"

# Shared memory for worker heartbeat files where available (Linux only)
worker_tmp_dir = "/dev/shm" if os.path.exists("/dev/shm") else None


def on_starting(server):
    server.log.info("Starting BookOn Gunicorn server")


def when_ready(server):
    server.log.info("BookOn Gunicorn server is ready. Spawning workers")


def worker_abort(worker):
    """Called when a worker times out or is killed."""
    worker.log.warning(f"Worker {worker.pid} aborted (timeout or killed)")


def on_exit(server):
    server.log.info("Shutting down BookOn Gunicorn server")
