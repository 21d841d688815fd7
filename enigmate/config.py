import os
from dotenv import load_dotenv

load_dotenv()

# Database (Supabase Postgres connection string in production)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./enigmate.db")

# Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "")
SUPABASE_JWT_PUBLIC_KEY = os.getenv("SUPABASE_JWT_PUBLIC_KEY", "")
SUPABASE_JWT_AUDIENCE = "authenticated"

# Storage buckets
JUDGE_CALIBRATION_BUCKET = os.getenv("JUDGE_CALIBRATION_BUCKET", "judge-calibrations")
RIDDLE_IMAGE_BUCKET = os.getenv("RIDDLE_IMAGE_BUCKET", "riddle-images")
SIGNED_URL_TTL_SECONDS = 60 * 60 * 24 * 30  # 30 days

# Gemini
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
DEFAULT_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
JUDGE_MODEL = os.getenv("JUDGE_MODEL", DEFAULT_MODEL)
CHAT_MODEL = os.getenv("CHAT_MODEL", DEFAULT_MODEL)
TRANSLATION_MODEL = os.getenv("TRANSLATION_MODEL", DEFAULT_MODEL)

# Scoring
BASE_SCORE_CORRECT = 700
BASE_SCORE_INCORRECT = 300
MAX_TIME_BONUS = 400
HINT_PENALTY = 150
MESSAGE_PENALTY = 25  # per user message after the first
MAX_RAW_SCORE = BASE_SCORE_CORRECT + MAX_TIME_BONUS

# Master chat
MAX_MESSAGES_STORED = 100

# Frontend URL for CORS
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
