import logging
import time
from collections.abc import Callable, Iterator

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from taskapi.core.config import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(settings: Settings) -> Engine:
    url = settings.database_url
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            options["poolclass"] = StaticPool
        return create_engine(url, echo=settings.db_echo, **options)

    return create_engine(
        url,
        echo=settings.db_echo,
        pool_size=5,
        max_overflow=0,
        pool_timeout=30,
        pool_pre_ping=True,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


def check_connection(engine: Engine) -> None:
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))


def connect_with_retry(
    engine: Engine,
    retries: int = 10,
    delay: float = 5.0,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    for attempt in range(1, retries + 1):
        try:
            check_connection(engine)
        except SQLAlchemyError as exc:
            logger.warning('Database connection attempt %d/%d failed: %s', attempt, retries, exc)
            if attempt == retries:
                logger.error('Could not connect to the database after %d attempts', retries)
                raise
            sleep(delay)
        else:
            logger.info('Database connection established')
            return


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
