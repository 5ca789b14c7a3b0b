"""Global configuration for Promemoria Alerts."""

import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Discord (notification surface host)
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")
ALERT_CHANNEL_ID = int(os.getenv("ALERT_CHANNEL_ID", 0))

# Link opened by tapping the alert body (the only path that opens the app)
ALERT_APP_URL = os.getenv("ALERT_APP_URL", "")

# Local HTTP API used by the reminder app
ALERT_API_HOST = os.getenv("ALERT_API_HOST", "127.0.0.1")
ALERT_API_PORT = int(os.getenv("ALERT_API_PORT", 8110))

# Logging
LOG_DIR = Path(os.getenv("LOCALAPPDATA", ".")) / "promemoria-alerts" / "logs"
LOG_DIR.mkdir(parents=True, exist_ok=True)
