# create_tables.py
import logging
import sys

from app.config.logging import configure_logging
from app.database import Base, engine
from app.models import User, Team, TeamMember, Task  # noqa: F401 - registers the tables

logger = logging.getLogger(__name__)

def create_tables(drop: bool = False):
    """Create all tables, dropping the existing ones first when asked"""
    if drop:
        Base.metadata.drop_all(bind=engine)
        logger.info("Existing tables dropped")
    Base.metadata.create_all(bind=engine)
    logger.info("All tables created successfully")

if __name__ == "__main__":
    configure_logging()
    create_tables(drop="--drop" in sys.argv[1:])
