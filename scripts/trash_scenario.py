# scripts/trash_scenario.py
"""Walk one ticket through trash and restore against DATABASE_URL."""
import logging

from ticket_lifecycle.backend.app.config import configure_logging
from ticket_lifecycle.backend.app.db import Base, SessionLocal, engine
from ticket_lifecycle.backend.app.errors import LifecycleError
from ticket_lifecycle.backend.app.lifecycle.acl import Principal
from ticket_lifecycle.backend.app.models import User
from ticket_lifecycle.backend.app.schemas.ticket import TicketCreate
from ticket_lifecycle.backend.app.services.tickets import (
    create_ticket,
    delete_ticket,
    restore_ticket,
)

logger = logging.getLogger("trash_scenario")


def main():
    configure_logging()
    Base.metadata.create_all(engine)

    db = SessionLocal()
    try:
        user = db.query(User).filter_by(username="scenario").first()
        if not user:
            user = User(username="scenario", role="user")
            db.add(user)
            db.commit()
        principal = Principal.from_user(user)

        first = create_ticket(db, principal, TicketCreate(name="T1"))
        delete_ticket(db, principal, first.uuid)
        second = create_ticket(db, principal, TicketCreate(name="T1"))
        logger.info("created %s, trashed it, created %s", first.uuid, second.uuid)

        try:
            restore_ticket(db, principal, first.uuid)
        except LifecycleError as exc:
            logger.info("restore of %s refused: %s", first.uuid, exc.code.value)

        delete_ticket(db, principal, first.uuid, ultimate=True)
        delete_ticket(db, principal, second.uuid, ultimate=True)
    finally:
        db.close()


if __name__ == "__main__":
    main()
