# stockroom/database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from stockroom.core.config import settings


def build_engine(url: str):
    # Heroku/Azure style URLs
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    if url.startswith("sqlite"):
        # One connection per request thread; wait on writer locks instead of failing
        connect_args = {"check_same_thread": False, "timeout": 30}
    else:
        connect_args = {}

    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
