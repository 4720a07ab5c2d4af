import os

bind = f"0.0.0.0:{os.getenv('PORT', '3000')}"

# Logging
accesslog = "-"  # Log to stdout
errorlog = "-"   # Log to stderr
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# Worker configuration
workers = int(os.getenv("WEB_CONCURRENCY", "3"))
worker_class = "sync"
timeout = 60

# Path handling
forwarded_allow_ips = "*"

# Error handling
capture_output = True
enable_stdio_inheritance = True

# Create logs directory if it doesn't exist
os.makedirs(os.getenv("LOG_DIR", "logs"), exist_ok=True)
