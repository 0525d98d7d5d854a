import os

# Keep the service from writing log files while under test.
os.environ.setdefault("APP_LOG_TO_FILE", "0")
