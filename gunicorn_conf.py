"""
Gunicorn configuration file for the statement ingestion service.

Poll endpoints block while a batch is processed, so workers get a generous
timeout. Run with: gunicorn -c gunicorn_conf.py statement_ingest.main:app
"""
import os

# Server socket
bind = os.getenv("BIND", "0.0.0.0:8000")
backlog = 2048

# Worker processes
# Keep this low with SQLite: every worker shares one database file
workers = int(os.getenv("WEB_CONCURRENCY", "2"))

# UvicornWorker provides async support required by FastAPI
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000

# A poll sleeps through the stability window and then processes every file
timeout = 300
keepalive = 2

# Logging configuration
# Log to stdout/stderr (captured by systemd journald)
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Process naming
proc_name = "statement_ingest"

# Server mechanics
# Don't daemonize (systemd manages the process)
daemon = False
pidfile = None
umask = 0
user = None
group = None
tmp_upload_dir = None

# Set to False for safety with SQLite
preload_app = False

max_requests = 0
max_requests_jitter = 0
graceful_timeout = 30
