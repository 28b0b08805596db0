import os

from dotenv import load_dotenv

load_dotenv()

PORT = int(os.getenv("PORT", 8000))
NODE_ENV = os.getenv("NODE_ENV", "development")
IS_PRODUCTION = NODE_ENV == "production"

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "PorinityDB")
DB_USER = os.getenv("DB_USER")
DB_PASS = os.getenv("DB_PASS")
DB_HOST = os.getenv("DB_HOST", "cluster0.mongodb.net")

# Security settings
ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET", "access-secret-dev")
REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET", "refresh-secret-dev")
JWT_ALG = "HS256"
ACCESS_TOKEN_EXPIRES_MIN = 15
REFRESH_TOKEN_EXPIRES_DAYS = 7

# CORS
CLIENT_URL = os.getenv("CLIENT_URL")
ADMIN_URL = os.getenv("ADMIN_URL")
ALLOWED_ORIGINS = [
    origin
    for origin in ("http://localhost:5173", "http://localhost:5174", CLIENT_URL, ADMIN_URL)
    if origin
]

# Payments (card data is never processed, only the last four digits are kept)
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "USD")
BIODATA_PREMIUM_FEE = float(os.getenv("BIODATA_PREMIUM_FEE", 5))
USER_PREMIUM_FEE = float(os.getenv("USER_PREMIUM_FEE", 5))
