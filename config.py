import os
import tempfile

from dotenv import load_dotenv

load_dotenv()

DEFAULT_PORT = 8000
DEFAULT_DATABASE_NAME = "videotube"
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", 10))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", 100))

PORT = int(os.getenv("PORT", DEFAULT_PORT))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")
ALLOWED_ORIGINS = [origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",")]

# MongoDB
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", DEFAULT_DATABASE_NAME)

# Supabase Storage (media hosting)
SUPABASE_PROJECT_URL = os.getenv("SUPABASE_PROJECT_URL")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY")
MEDIA_BUCKET = os.getenv("MEDIA_BUCKET", "videos")

# Multipart uploads are buffered here before being sent to storage
UPLOAD_TEMP_DIR = os.getenv("UPLOAD_TEMP_DIR", os.path.join(tempfile.gettempdir(), "videotube-uploads"))
FFPROBE_BINARY = os.getenv("FFPROBE_BINARY", "ffprobe")
