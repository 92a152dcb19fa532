"""
cozydeploy Constants

Centralized constants for file names, remote paths and defaults.
"""

# Default SSH Configuration
DEFAULT_SSH_PORT = 22
SSH_CONNECTION_TIMEOUT = 10

# SFTP packet size (32 KiB)
TRANSFER_PACKET_SIZE = 1 << 15

# Transfers are the only steps that may be retried
DEFAULT_TRANSFER_ATTEMPTS = 1
MAX_TRANSFER_ATTEMPTS = 5

# Deployment file
DEFAULT_DEPLOYMENT_FILE = "cozydeploy.yml"
DEFAULT_ENV_FILE = ".env"

# Environment variables holding secrets
ENV_SENSOR_PASSWORD = "COZY_SENSOR_PASSWORD"
ENV_APP_PASSWORD = "COZY_APP_PASSWORD"
ENV_IPA_PASSWORD = "COZY_IPA_PASSWORD"

# Search index memory in gigabytes
MIN_ES_RAM_GB = 2
MAX_ES_RAM_GB = 31

# Server archives (prepackaged)
SENSOR_ARCHIVE = "Sensor.tar.gz"
APP_ARCHIVE = "App.tar.gz"

# Script templates (operator-authored)
SENSOR_TEMPLATE = "SensorDeploy.gtpl"
APP_TEMPLATE = "AppDeploy.gtpl"

# Rendered scripts (transient)
SENSOR_SCRIPT = "SensorDeploy.sh"
APP_SCRIPT = "AppDeploy.sh"

# Remote layout
REMOTE_STAGING_DIR = "/tmp"
SENSOR_REMOTE_DIR = "/tmp/Sensor"
APP_REMOTE_DIR = "/tmp/application"

# Interface discovery
INTERFACE_LIST_COMMAND = "ip -o link show"

# Log Configuration
LOG_DIR_NAME = "logs"
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"

# Replacement for secrets in log output
SECRET_MASK = "****"
