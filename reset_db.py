import logging

from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.core.logging import configure_logging
from app.database import engine

logger = logging.getLogger(__name__)

if __name__ == "__main__":
    configure_logging()
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    logger.info("Database reset: all tables dropped and recreated")
