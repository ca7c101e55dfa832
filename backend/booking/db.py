import logging

from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel, create_engine, Session

from . import config

connect_args = {}
if config.DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False, "timeout": config.DB_TIMEOUT}

engine = create_engine(
    config.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args=connect_args,
)

logger = logging.getLogger(__name__)

def create_db_and_tables() -> None:
    SQLModel.metadata.create_all(engine)

def verify_connection() -> None:
    """Fail fast if the database cannot be reached."""
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
    except OperationalError:
        logger.exception("Database connectivity check failed")
        raise

def get_session():
    with Session(engine) as session:
        yield session
