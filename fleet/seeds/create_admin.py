import logging
import os

from sqlalchemy.orm import Session

from fleet.core.config import Settings, load_settings
from fleet.core.security import hash_password
from fleet.db.base import Base
from fleet.db.session import build_engine, build_session_factory
from fleet.models.user import User
from fleet.models import audit_log, booking, company, customer, driver, driver_payment, vehicle  # noqa: F401


logger = logging.getLogger(__name__)

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@fleetbooking.com")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin12345")  # change later
ADMIN_NAME = "Administrator"


def create_admin(db: Session, email: str = ADMIN_EMAIL, password: str = ADMIN_PASSWORD) -> User:
    admin = db.query(User).filter(User.email == email.lower()).first()
    if admin:
        logger.info("Admin %s already exists", admin.email)
        return admin

    admin = User(
        name=ADMIN_NAME,
        email=email.lower(),
        hashed_password=hash_password(password),
        role="admin",
    )

    db.add(admin)
    db.commit()
    db.refresh(admin)

    logger.info("Admin created: %s", admin.email)
    return admin


def run(settings: Settings | None = None):
    settings = settings or load_settings()
    engine = build_engine(settings.DATABASE_URL)
    Base.metadata.create_all(bind=engine)

    db = build_session_factory(engine)()
    try:
        create_admin(db)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
