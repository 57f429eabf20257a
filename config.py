"""
Application settings

Every value is read once from the environment (a local .env file is loaded
first) and exposed as a module constant.
"""

import os
from dotenv import load_dotenv

load_dotenv()

ENVIRONMENT = os.getenv("ENVIRONMENT", "production")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", 8000))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME")

# Auth
JWT_SECRET = os.getenv("JWT_SECRET", "default_secret")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", 24))
ALLOWED_EMAIL_DOMAIN = os.getenv("ALLOWED_EMAIL_DOMAIN", "robbialac.pt")
VERIFICATION_CODE_TTL_MINUTES = 10

# Object storage
STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "r2")
R2_ENDPOINT = os.getenv("R2_ENDPOINT")
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID")
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY")
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "workplace-safety")
R2_URL_EXPIRATION = int(os.getenv("R2_URL_EXPIRATION", 3600))
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")

# Upload limits
MAX_PDF_SIZE = 10 * 1024 * 1024
MAX_IMAGE_SIZE = 5 * 1024 * 1024

# Video processing
FFMPEG_PATH = os.getenv("FFMPEG_PATH", "ffmpeg")
FFPROBE_PATH = os.getenv("FFPROBE_PATH", "ffprobe")
VIDEO_TMP_DIR = os.getenv("VIDEO_TMP_DIR", "tmp/videos")
VIDEO_MAX_DURATION = 4 * 60 * 60
VIDEO_QUALITIES = {
    "high": {"width": 1920, "height": 1080, "bitrate": "4000k"},
    "medium": {"width": 1280, "height": 720, "bitrate": "2000k"},
    "low": {"width": 854, "height": 480, "bitrate": "1000k"},
}
THUMBNAIL_TIMESTAMP = "00:00:01"
THUMBNAIL_SIZE = "640x360"
