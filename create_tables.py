import logging

from database import Base, engine

# registers users/products/descriptions/analytics on Base.metadata
import models  # noqa: F401

log = logging.getLogger(__name__)


def create_tables() -> None:
    log.info("Database URL: %s", engine.url)
    log.info("Models loaded: %s", ", ".join(sorted(Base.metadata.tables)))
    Base.metadata.create_all(bind=engine)
    log.info("Tables created successfully.")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    create_tables()
