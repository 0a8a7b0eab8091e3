"""Create the staybook schema (tables plus the booking overlap guard)."""

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from staybook.database import Base, get_engine
import staybook.models  # noqa: F401  (registers tables on Base.metadata)

logger = logging.getLogger(__name__)


def init_db(engine: Optional[Engine] = None) -> None:
    target = engine or get_engine()
    logger.info("Creating database schema on %s", target.dialect.name)
    Base.metadata.create_all(bind=target)


def drop_db(engine: Optional[Engine] = None) -> None:
    target = engine or get_engine()
    logger.warning("Dropping database schema on %s", target.dialect.name)
    Base.metadata.drop_all(bind=target)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
