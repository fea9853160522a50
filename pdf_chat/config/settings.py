"""
Configuration settings for the PDF Chat application.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base paths
BASE_DIR = Path(__file__).resolve().parent.parent.parent
DATA_DIR = Path(os.getenv("PDF_CHAT_DATA_DIR", str(BASE_DIR / "data")))

# API Keys
# Optional: users normally enter their own key in the settings panel
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")

# Langfuse Configuration
LANGFUSE_PUBLIC_KEY = os.getenv("LANGFUSE_PUBLIC_KEY")
LANGFUSE_SECRET_KEY = os.getenv("LANGFUSE_SECRET_KEY")

# Model Configuration
CHAT_MODEL = os.getenv("CHAT_MODEL", "gpt-4o")
AVAILABLE_MODELS = ["gpt-4o", "gpt-4o-mini", "gpt-4-turbo", "gpt-3.5-turbo"]
TEMPERATURE = 0.3  # Low temperature keeps answers close to the document text
MAX_TOKENS = 1000
MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", "8000"))  # characters of document sent to the model
TRUNCATION_MARKER = "...[content truncated]"

# Heuristic responder latency (seconds)
HEURISTIC_DELAY_MIN = float(os.getenv("HEURISTIC_DELAY_MIN", "1.0"))
HEURISTIC_DELAY_MAX = float(os.getenv("HEURISTIC_DELAY_MAX", "2.0"))

# Usage and settings storage
USAGE_DB_PATH = os.getenv("USAGE_DB_PATH", str(DATA_DIR / "usage.db"))
SETTINGS_DB_PATH = os.getenv("SETTINGS_DB_PATH", USAGE_DB_PATH)

# Retry Configuration (store writes only; model calls are single attempt)
DB_MAX_RETRIES = int(os.getenv("DB_MAX_RETRIES", "3"))
RETRY_DELAY = float(os.getenv("RETRY_DELAY", "0.1"))  # seconds

# Security Configuration
MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", "10485760"))  # 10MB default
ALLOWED_MIME_TYPES = ["application/pdf"]

# Checkout redirect targets
CHECKOUT_SUCCESS_URL = os.getenv("CHECKOUT_SUCCESS_URL", "http://localhost:8501/?checkout=success")
CHECKOUT_CANCEL_URL = os.getenv("CHECKOUT_CANCEL_URL", "http://localhost:8501/?checkout=cancel")
BILLING_PORTAL_RETURN_URL = os.getenv("BILLING_PORTAL_RETURN_URL", "http://localhost:8501/")
