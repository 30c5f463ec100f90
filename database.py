from sqlmodel import Session, create_engine
from settings import settings, logger


connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # FastAPI runs sync dependencies in a threadpool
    connect_args = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, echo=settings.DB_ECHO, connect_args=connect_args)
logger.debug("Database engine created", extra={"dialect": engine.dialect.name})


def get_session():
    """Yield a database session for the duration of a request."""
    with Session(engine) as session:
        yield session
