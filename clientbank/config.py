import os

BASE_DIR = os.path.dirname(os.path.dirname(__file__))


def db_path() -> str:
    return os.environ.get("CLIENTBANK_DB_PATH", os.path.join(os.getcwd(), "data", "clientbank.db"))

def store_kind() -> str:
    return os.environ.get("CLIENTBANK_STORE", "sqlite").strip().lower()

def seed_enabled() -> bool:
    return os.getenv("CLIENTBANK_DISABLE_SEED") != "1"

def log_dir() -> str:
    return os.environ.get("CLIENTBANK_LOG_DIR", os.path.join(BASE_DIR, "logs"))
