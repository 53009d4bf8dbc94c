import os


# Database
SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/meeting_rooms.db")
DB_TIMEOUT = float(os.getenv("DB_TIMEOUT", "5"))

# JWT configuration
SECRET_KEY = os.getenv("SECRET_KEY", "secure-secret-key-1234567890")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Pagination
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
