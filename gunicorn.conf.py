# Bind & workers
bind = "0.0.0.0:8000"
wsgi_app = "vidnest.wsgi:app"
# The refresh token registry lives in process memory: one worker, many threads.
workers = 1
threads = 8
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr (collected by Docker)
accesslog = "-"
errorlog = "-"
loglevel = "info"

# Trust proxy headers
forwarded_allow_ips = "*"
proxy_protocol = False
