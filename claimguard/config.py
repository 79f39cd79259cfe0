# claimguard/config.py
"""
Configuration settings for the application.
Values come from the environment (or a local .env file) with sensible defaults.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# --- Gemini (cloud path) ---
GOOGLE_API_KEY = os.getenv("GOOGLE_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
EXTRACTION_TEMPERATURE = 0.1
VERIFICATION_MAX_OUTPUT_TOKENS = 8192
VERIFICATION_THINKING_BUDGET = 2048

# --- Local models ---
# Sentence encoder used when the tagging model expects a whole-text embedding
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "BAAI/bge-small-en-v1.5")
DEFAULT_SEQUENCE_LENGTH = 512
MAX_KEY_TOPICS = 15

# --- Knowledge base ---
MAX_POLICY_UPLOAD_MB = 20

# --- Connectivity ---
OFFLINE_MODE = os.getenv("OFFLINE_MODE", "false").strip().lower() in {"1", "true", "yes"}
CONNECTIVITY_CHECK_URL = os.getenv("CONNECTIVITY_CHECK_URL", "https://generativelanguage.googleapis.com")
CONNECTIVITY_TIMEOUT = 3

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
