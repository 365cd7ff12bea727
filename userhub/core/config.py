import os
from pathlib import Path

from dotenv import load_dotenv


load_dotenv()


APP_ENV = os.getenv("APP_ENV", "development")

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3005"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE") or None

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./userhub.db")

USER_STORE_BACKENDS = {"file", "database"}
USER_STORE_BACKEND = os.getenv("USER_STORE_BACKEND", "file").strip().lower()
USERS_FILE_PATH = os.getenv(
    "USERS_FILE_PATH",
    str(Path(__file__).resolve().parent.parent / "users.json"),
)

JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "240"))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

SEED_ADMIN_NAME = os.getenv("SEED_ADMIN_NAME", "admin")
SEED_ADMIN_EMAIL = os.getenv("SEED_ADMIN_EMAIL", "admin@example.com")
SEED_ADMIN_PASSWORD = os.getenv("SEED_ADMIN_PASSWORD", "change-me")

def validate_runtime_config() -> None:
    if APP_ENV.lower() == "production" and JWT_SECRET_KEY == "change-me":
        raise RuntimeError("JWT_SECRET_KEY must be set in production.")
    if USER_STORE_BACKEND not in USER_STORE_BACKENDS:
        raise RuntimeError(
            f"USER_STORE_BACKEND must be one of {sorted(USER_STORE_BACKENDS)}, got {USER_STORE_BACKEND!r}."
        )
