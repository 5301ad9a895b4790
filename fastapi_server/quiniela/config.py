"""
Application configuration - loads settings from environment variables.
"""
import os
from dotenv import load_dotenv

load_dotenv()

PGHOST = os.getenv("PGHOST")
PGUSER = os.getenv("PGUSER")
PGPORT = os.getenv("PGPORT", "5432")
PGDATABASE = os.getenv("PGDATABASE")
PGPASSWORD = os.getenv("PGPASSWORD")

if all([PGHOST, PGUSER, PGDATABASE, PGPASSWORD]):
    DATABASE_URL = (
        f"postgresql://{PGUSER}:{PGPASSWORD}@{PGHOST}:{PGPORT}/{PGDATABASE}?sslmode=require"
    )
else:
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./quiniela.db")

# API-Football (api-sports.io)
API_FOOTBALL_URL = os.getenv("API_FOOTBALL_URL", "https://v3.football.api-sports.io")
API_FOOTBALL_KEY = os.getenv("API_FOOTBALL_KEY")
API_FOOTBALL_TIMEZONE = os.getenv("API_FOOTBALL_TIMEZONE", "America/Mexico_City")

# Pool rules
MAX_FIXTURES = int(os.getenv("MAX_FIXTURES", "9"))
MAX_DESCRIPTION_CHARS = int(os.getenv("MAX_DESCRIPTION_CHARS", "200"))
DEADLINE_LEAD_MINUTES = int(os.getenv("DEADLINE_LEAD_MINUTES", "60"))

# Settlement
SETTLEMENT_BATCH_SIZE = int(os.getenv("SETTLEMENT_BATCH_SIZE", "400"))
SETTLEMENT_MAX_RETRIES = int(os.getenv("SETTLEMENT_MAX_RETRIES", "3"))
SETTLEMENT_RETRY_DELAY = float(os.getenv("SETTLEMENT_RETRY_DELAY", "1.0"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
