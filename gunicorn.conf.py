"""
Gunicorn configuration for the account request gateway
"""

import os

# Server socket
bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8080")
backlog = 2048

# One request per worker at a time; directory and mail sessions are blocking
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
worker_class = "sync"
# Above the worst case of directory + mail timeouts so stage errors surface first
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "120"))
keepalive = 2

# Restart workers after this many requests
max_requests = 1000
max_requests_jitter = 50

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s"'

# Process naming
proc_name = "account_request_gateway"

# Daemon mode
daemon = False

# Preload application for better performance
preload_app = True

# Security
limit_request_line = 4094
limit_request_fields = 100
limit_request_field_size = 8190

def on_starting(server):
    server.log.info("Starting account request gateway")

def when_ready(server):
    server.log.info("Account request gateway is ready. Listening on: %s", server.address)

def on_exit(server):
    server.log.info("Shutting down account request gateway")
