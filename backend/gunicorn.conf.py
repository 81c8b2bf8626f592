import os

wsgi_app = "postboard.wsgi:app"

# Bind & workers
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
# The in-memory refresh store is per process: keep one worker unless the
# store backend is shared (redis/database).
_shared_store = os.getenv("REFRESH_STORE_BACKEND", "memory").lower() in ("redis", "database")
workers = int(os.getenv("GUNICORN_WORKERS", "2" if _shared_store else "1"))
threads = int(os.getenv("GUNICORN_THREADS", "4"))
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# Honor proxy headers (see postboard.core.proxy)
forwarded_allow_ips = "*"
proxy_protocol = False
