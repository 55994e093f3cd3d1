"""Gunicorn configuration for the Explain Anything relay.

Usage:
    gunicorn main:app -c deploy/gunicorn.conf.py

The relay is I/O bound: every stream holds one upstream LLM call open for
its whole lifetime (typically 5-60s) while pushing SSE frames.
"""

import multiprocessing
import os

# ─── Server socket ──────────────────────────────────────────────

bind = os.getenv("BIND", "0.0.0.0:5000")
backlog = 2048

# ─── Worker processes ───────────────────────────────────────────
#
# For async ASGI: 1 worker per core.  Each worker's stream capacity is
# bounded by MAX_CONCURRENT_STREAMS (see services/concurrency.py).

workers = int(os.getenv("WORKERS", min(multiprocessing.cpu_count(), 4)))
worker_class = "uvicorn.workers.UvicornWorker"

# ─── Timeouts ───────────────────────────────────────────────────
#
# Must exceed the longest stream; the relay itself imposes no upstream
# timeout unless RELAY_UPSTREAM_TIMEOUT is set.

timeout = 180
graceful_timeout = 60   # Let in-flight streams reach their terminal frame
keepalive = 120

# ─── Worker recycling ──────────────────────────────────────────

max_requests = 3000
max_requests_jitter = 500

# ─── Logging ────────────────────────────────────────────────────

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
access_log_format = (
    '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" %(D)sμs'
)

proc_name = "explain-anything-relay"

# ─── Server hooks ───────────────────────────────────────────────


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info(
        "Starting Explain Anything relay — workers=%d, timeout=%ds, bind=%s",
        workers,
        timeout,
        bind,
    )


def worker_exit(server, worker):
    """Called when a worker has been killed or exited."""
    server.log.info("Worker exit (pid: %s)", worker.pid)
