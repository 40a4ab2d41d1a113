# storefront/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from storefront.utils.settings import DATABASE_URL, DB_POOL_TIMEOUT, DB_STATEMENT_TIMEOUT_MS


class Base(DeclarativeBase):
    pass


def build_engine(url: str = DATABASE_URL):
    if url.startswith("postgresql"):
        # statement_timeout: checkout ktory wisi jest przerywany i rollbackowany
        return create_engine(
            url,
            pool_pre_ping=True,
            pool_timeout=DB_POOL_TIMEOUT,
            connect_args={"options": f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}"},
        )
    return create_engine(url)


engine = build_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
