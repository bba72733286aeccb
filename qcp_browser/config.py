# qcp_browser/config.py
import os

ENDPOINT = os.getenv("QCP_ENDPOINT", "ws://localhost:8080/session")

# defaults for the connect form
HOSTNAME = os.getenv("QCP_HOSTNAME", "")
LOCATION = os.getenv("QCP_LOCATION", ".")
# remote qcp binary; the server looks it up on the PATH when unset
EXECUTABLE = os.getenv("QCP_EXECUTABLE") or None

# navigation, greeting and close handshake all share this bound
REQUEST_TIMEOUT_MS = int(os.getenv("QCP_REQUEST_TIMEOUT_MS", "15000"))

LOG_LEVEL = os.getenv("QCP_LOG_LEVEL", "INFO")
LOG_DIR = os.getenv("QCP_LOG_DIR") or None
LOG_MAX_BYTES = int(os.getenv("QCP_LOG_MAX_BYTES", "10485760"))   # 10MB
LOG_BACKUP_COUNT = int(os.getenv("QCP_LOG_BACKUP_COUNT", "5"))
