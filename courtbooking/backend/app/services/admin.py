import logging
from sqlalchemy.orm import Session

from ..core import security
from ..db import models

logger = logging.getLogger(__name__)


def ensure_admin_exists(session: Session, username: str, password: str) -> models.User:
    """Make sure the default manager account exists with the configured password."""
    manager = session.query(models.User).filter_by(username=username).first()
    if manager:
        updated = False
        if not security.verify_password(password, manager.password_hash):
            manager.password_hash = security.get_password_hash(password)
            updated = True
        if manager.role != models.UserRole.manager:
            manager.role = models.UserRole.manager
            updated = True
        if updated:
            session.commit()
            logger.info("Updated default manager '%s'", username)
        else:
            logger.info("Manager '%s' already exists", username)
        return manager

    manager = models.User(
        username=username,
        password_hash=security.get_password_hash(password),
        full_name="Quản lý",
        role=models.UserRole.manager,
    )
    session.add(manager)
    session.commit()
    logger.info("Created default manager '%s'", username)
    return manager
