# madarij/config.py
import os
from dotenv import load_dotenv

# variables del .env antes de leer nada
load_dotenv()

# ====== app ======
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))

# ====== auth ======
JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALG = os.getenv("JWT_ALG", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# ====== storage ======
AZURE_STORAGE_CONNECTION_STRING = os.getenv("AZURE_STORAGE_CONNECTION_STRING")
TABLE_NAME = os.getenv("TABLE_NAME", "notifications")

# ====== domain events ======
SB_CONN_STR = os.getenv("AZURE_SERVICE_BUS_CONNECTION_STRING")
SB_QUEUE = os.getenv("AZURE_SERVICE_BUS_QUEUE_NAME", "notifications-queue")

# ====== client ======
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:5000")
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "30"))
NOTIFICATIONS_DISPLAY_LIMIT = int(os.getenv("NOTIFICATIONS_DISPLAY_LIMIT", "10"))


def dev_endpoints_enabled() -> bool:
    return ENVIRONMENT != "production"
