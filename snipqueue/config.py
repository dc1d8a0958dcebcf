# snipqueue/config.py

import os
import warnings
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./snipqueue.db")

# Local identity tokens (python-jose)
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    warnings.warn("SECRET_KEY not set! Using insecure default", RuntimeWarning, stacklevel=2)
    SECRET_KEY = "change-me-later"
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# Emails that are always treated as admins, comma separated
ADMIN_EMAILS = [
    e.strip().lower()
    for e in os.getenv("ADMIN_EMAILS", "admin@example.com").split(",")
    if e.strip()
]

# "local" (jose tokens + identity table) or "firebase" (firebase-admin)
IDENTITY_BACKEND = os.getenv("IDENTITY_BACKEND", "local")
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
SERVICE_ACCOUNT = os.getenv("SERVICE_ACCOUNT")  # service account JSON as a string

# LINE login bridge
LINE_CHANNEL_ID = os.getenv("LINE_CHANNEL_ID")
LINE_VERIFY_URL = os.getenv("LINE_VERIFY_URL", "https://api.line.me/oauth2/v2.1/verify")

# Queue optimizer
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")

SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", "15"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
