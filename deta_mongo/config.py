import os
from dotenv import load_dotenv

load_dotenv()

MONGO_URI = os.getenv("MONGO_URI")
DATABASE_NAME = os.getenv("DATABASE_NAME", "deta")

# ---- Connection lifecycle ----
# Seconds without any in-flight operation before the client is closed.
# "0" keeps the connection open for the lifetime of the Deta handle.
IDLE_TIMEOUT_SECONDS = float(os.getenv("IDLE_TIMEOUT_SECONDS", "30"))

SERVER_SELECTION_TIMEOUT_MS = int(os.getenv("SERVER_SELECTION_TIMEOUT_MS", "5000"))

# ---- Logging ----
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")
