# salon_scheduler/config.py

import os

from dotenv import load_dotenv

load_dotenv()

# Database (SQLite file by default)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./salon.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Base URL used to build confirmation links sent to clients
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Threads used to deliver notifications off the request path
NOTIFIER_WORKERS = int(os.getenv("NOTIFIER_WORKERS", "2"))

# Salon policy defaults, used when a salon does not override them
DEFAULT_MIN_LEAD_HOURS = int(os.getenv("DEFAULT_MIN_LEAD_HOURS", "2"))
DEFAULT_MIN_CANCEL_HOURS = int(os.getenv("DEFAULT_MIN_CANCEL_HOURS", "2"))
DEFAULT_MAX_NO_SHOWS = int(os.getenv("DEFAULT_MAX_NO_SHOWS", "3"))
DEFAULT_BOOKING_INTERVAL_MINUTES = int(os.getenv("DEFAULT_BOOKING_INTERVAL_MINUTES", "30"))
