"""Constants shared by the server package."""

PROJECT_NAME = "ServiceOS"

API_V1_STR = "/api/v1"

SCHEMA_VERSION = "1"

ORGANIZATION_HEADER = "X-Organization-Id"
USER_HEADER = "X-User-Id"
PORTAL_TOKEN_HEADER = "X-Portal-Token"

# 50 MB
MAX_UPLOAD_SIZE = 50 * 1024 * 1024

SLOW_REQUEST_THRESHOLD_MS = 1000
