import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from base import Base
from config import config

logger = logging.getLogger(__name__)

DATABASE_URL = config.DATABASE_URL

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autoflush=False, bind=engine)

def init_db() -> None:
    """
    Creates the discount tables on the configured database if they are missing.
    """
    import schema
    Base.metadata.create_all(bind=engine)
    logger.info(f"Discount schema ready on {engine.url.render_as_string(hide_password=True)}")

def get_db():
    """
    Dependency for generating a new SQLAlchemy session.

    Yields:
        An active database session.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

if __name__ == "__main__":
    init_db()
