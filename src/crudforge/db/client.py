# src/crudforge/db/client.py
"""Engine and session management."""

from typing import Any, Iterator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from ..core.logging import log


class DbClient:
    """Owns the engine and hands out one session per request."""

    def __init__(
        self,
        url: str,
        echo: bool = False,
        engine: Optional[Engine] = None,
        **engine_kwargs: Any,
    ):
        self.url = url
        self.engine = engine or create_engine(url, echo=echo, **engine_kwargs)
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def get_db(self) -> Iterator[Session]:
        """FastAPI dependency yielding a request-scoped session."""
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def test_connection(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        log.success(f"Connected to {self.engine.url.render_as_string(hide_password=True)}")
        return True
