# backend/crm/config.py
import os
from dotenv import load_dotenv

load_dotenv()

# Database Configuration
DB_BACKEND = os.getenv("DB_BACKEND", "firestore")  # "firestore" or "memory"
FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS", "firebase-service-account.json")
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID") or None

# Collections
LEADS_COLLECTION = "leads"
STUDENTS_COLLECTION = "students"
ATTENDANCE_COLLECTION = "attendance"
PAYMENTS_COLLECTION = "payments"

# JWT Configuration
SECRET_KEY = os.getenv("JWT_SECRET", "your-super-secret-key-change-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 180))

# Admin credentials (single environment-configured account)
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "")

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", 3001))
FRONTEND_URL = os.getenv("FRONTEND_URL", "*")
DEBUG = os.getenv("DEBUG", "false").lower() in ("1", "true", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Pagination
DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 500

# HTTP caching / compression
GET_CACHE_CONTROL = "public, max-age=300, stale-while-revalidate=60"
NO_CACHE_CONTROL = "no-cache, no-store, must-revalidate"
GZIP_MINIMUM_SIZE = 1024
