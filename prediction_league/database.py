from sqlmodel import SQLModel, Session, create_engine
from .config import DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    DATABASE_URL,
    echo=False,
    connect_args=connect_args
)


def create_db_and_tables():
    """Create all database tables."""
    from . import models  # noqa: F401  registers the tables on SQLModel.metadata

    SQLModel.metadata.create_all(engine)


def get_session():
    """Dependency for getting database sessions."""
    with Session(engine) as session:
        yield session
