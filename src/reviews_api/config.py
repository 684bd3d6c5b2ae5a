import os

from dotenv import load_dotenv

load_dotenv()


def _required_env(name: str) -> str:
    value = os.getenv(name)
    if not value:
        raise RuntimeError(
            f"Missing required environment variable '{name}'. "
            "Set it in the environment or in the project .env file."
        )
    return value


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# PUBLIC_INTERFACE
def database_dsn() -> str:
    """
    Build DSN from the standardized database env vars.

    Uses:
      - POSTGRES_URL (optional full DSN; if provided, it wins)
      - POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_DB, POSTGRES_PORT
      - POSTGRES_HOST (defaults to localhost)
    """
    url = os.getenv("POSTGRES_URL")
    if url:
        return url

    user = _required_env("POSTGRES_USER")
    password = _required_env("POSTGRES_PASSWORD")
    db = _required_env("POSTGRES_DB")
    port = _required_env("POSTGRES_PORT")
    host = os.getenv("POSTGRES_HOST", "localhost")
    return f"postgresql://{user}:{password}@{host}:{port}/{db}"


def pool_min() -> int:
    return int(os.getenv("DB_POOL_MIN", "1"))


def pool_max() -> int:
    return int(os.getenv("DB_POOL_MAX", "10"))


def jwt_secret() -> str:
    # Required for security; do not default.
    return _required_env("JWT_SECRET")


def jwt_algorithm() -> str:
    return os.getenv("JWT_ALGORITHM", "HS256")


def jwt_exp_minutes() -> int:
    return int(os.getenv("JWT_EXPIRES_MINUTES", "60"))  # default: 1 hour


def bcrypt_rounds() -> int:
    return int(os.getenv("BCRYPT_ROUNDS", "12"))


def cors_allow_origins() -> list:
    env_val = os.getenv("CORS_ALLOW_ORIGINS")
    if not env_val:
        return ["*"]
    return [o.strip() for o in env_val.split(",") if o.strip()]


def reset_on_startup() -> bool:
    return _env_flag("DB_RESET_ON_STARTUP")


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()


def app_host() -> str:
    return os.getenv("APP_HOST", "0.0.0.0")


def app_port() -> int:
    return int(os.getenv("APP_PORT", os.getenv("PORT", "3000")))
