"""Initialize database tables."""
from sqlmodel import SQLModel
from app.models.tenant import Tenant, Holiday  # noqa: F401
from app.models.employee import Employee  # noqa: F401
from app.models.checklist import ChecklistTask, ChecklistHistory  # noqa: F401
from app.models.delegation import DelegationTask, DelegationHistory  # noqa: F401
from app.models.ticket import SupportTicket  # noqa: F401
from app.db.config import engine
from app.utils.logger import get_logger

logger = get_logger("checklist-db")


def init_db(target_engine=None):
    """Create all tables in the database."""
    target_engine = target_engine or engine
    logger.info("Creating all tables")
    SQLModel.metadata.create_all(target_engine)
    logger.info("Tables created", tables=sorted(SQLModel.metadata.tables))


if __name__ == "__main__":
    init_db()
