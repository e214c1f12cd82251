# storefront/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from storefront.utils.settings import DATABASE_URL, DB_STATEMENT_TIMEOUT_MS, DB_POOL_TIMEOUT


def build_engine(url: str = DATABASE_URL, **kwargs):
    if url.startswith("postgresql"):
        #statement_timeout so no query hangs forever
        kwargs.setdefault("connect_args", {"options": f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}"})
        kwargs.setdefault("pool_timeout", DB_POOL_TIMEOUT)
        kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, **kwargs)


engine = build_engine()

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
