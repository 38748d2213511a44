# backend/gunicorn_conf.py

# Gunicorn config file

from realty_intake.config.settings import settings

# HOST and PORT come from the same settings (env or .env) the app reads
bind = f"{settings.host}:{settings.port}"

# Sessions live in process memory, so every delivery for an actor must reach
# the same worker: run exactly one.
workers = 1
worker_class = "uvicorn.workers.UvicornWorker"
wsgi_app = "realty_intake.main:app"

# Settings for running behind a reverse proxy like Nginx
forwarded_allow_ips = "*"

# --- Logging ---
# Send access and error logs to stdout and stderr
accesslog = "-"
errorlog = "-"
loglevel = settings.log_level.lower()
