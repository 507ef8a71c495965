"""Configuration management for the BigQuery chat assistant."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Google Cloud
PROJECT_ID = os.getenv("PROJECT_ID")
LOCATION = os.getenv("LOCATION", "us-central1")
BIGQUERY_LOCATION = os.getenv("BIGQUERY_LOCATION") or None

# Model Configuration
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
AGENT_NAME = os.getenv("AGENT_NAME", "DataBot")
SQL_TEMPERATURE = 0.2
SQL_MAX_OUTPUT_TOKENS = 1024

# Table schemas loaded once at startup
TABLE_SCHEMA_PATH = os.getenv(
    "TABLE_SCHEMA_PATH",
    os.path.join(os.getcwd(), "table_schema.json")
)

# Conversation Configuration
DEFAULT_CONVERSATION_ID = "default"
MAX_HISTORY_MESSAGES = 10

# Server Configuration
PORT = int(os.getenv("PORT", "8080"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:3001"
).split(",")

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
