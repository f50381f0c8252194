import os
import urllib.parse
from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from storefront.utils.logging_config import get_logger

logger = get_logger(__name__)

load_dotenv()

def build_database_url() -> str:
    """DATABASE_URL wins; otherwise assemble a PostgreSQL URL from the POSTGRES_* variables."""
    explicit_url = os.getenv("DATABASE_URL")
    if explicit_url:
        return explicit_url

    user = os.getenv("POSTGRES_USER", "postgres")
    password = os.getenv("POSTGRES_PASSWORD", "postgres")
    host = os.getenv("POSTGRES_HOST", "postgres")
    port = os.getenv("POSTGRES_PORT", "5432")
    database = os.getenv("POSTGRES_DB", "storefront")

    # URL encode the password (special characters)
    encoded_password = urllib.parse.quote_plus(password)
    return f"postgresql://{user}:{encoded_password}@{host}:{port}/{database}"

def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores FK clauses (CASCADE / RESTRICT) unless asked per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

def make_engine(url: str):
    """
    Create an engine for the given URL.
    SQLite gets foreign key enforcement and cross-thread connections,
    remote PostgreSQL hosts get SSL.
    """
    connect_args = {}

    if url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": 30}
    elif "supabase" in url or "aws" in url:
        connect_args = {"sslmode": "require"}

    # pool_pre_ping avoids "server closed the connection unexpectedly" on cloud DBs
    engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)

    if url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine

SQLALCHEMY_DATABASE_URL = build_database_url()

engine = make_engine(SQLALCHEMY_DATABASE_URL)
logger.info(f"Database engine created for dialect '{engine.dialect.name}'.")

# One session per request = one atomic unit of work
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Dependency for FastAPI Routers
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
