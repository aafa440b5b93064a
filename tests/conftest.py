# tests/conftest.py
import os

# db.py refuses to import without a URL; tests build their own engines anyway
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from ticket_lifecycle.backend.app.db import Base, make_engine  # noqa: E402
from ticket_lifecycle.backend.app.lifecycle.acl import Principal  # noqa: E402
from ticket_lifecycle.backend.app.lifecycle.references import Location  # noqa: E402
from ticket_lifecycle.backend.app.models import (  # noqa: E402
    Permission,
    Tag,
    TagResource,
    User,
)
from ticket_lifecycle.backend.app.services.tickets import tickets  # noqa: E402


@pytest.fixture()
def engine():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)()
    yield session
    session.close()


@pytest.fixture()
def make_user(db):
    def _make(username, role="user"):
        user = User(username=username, role=role)
        db.add(user)
        db.commit()
        return Principal.from_user(user)

    return _make


@pytest.fixture()
def alice(make_user):
    return make_user("alice")


@pytest.fixture()
def bob(make_user):
    return make_user("bob")


@pytest.fixture()
def observer(make_user):
    return make_user("olga", role="observer")


@pytest.fixture()
def make_ticket(db):
    def _make(owner, name, comment=None, **attributes):
        return tickets.create(db, owner, name, comment, **attributes)

    return _make


@pytest.fixture()
def grant(db):
    """Give `subject` the operation `name` on one resource row."""

    def _grant(subject, name, row, location=Location.TABLE, kind="ticket"):
        permission = Permission(
            owner=row.owner,
            name=name,
            resource_type=kind,
            resource=row.id,
            resource_uuid=row.uuid,
            resource_location=int(location),
            subject_type="user",
            subject=subject.user_id,
        )
        db.add(permission)
        db.commit()
        return permission

    return _grant


@pytest.fixture()
def label(db):
    """Attach the tag `tag_name` to one resource row."""

    def _label(row, tag_name="triage", location=Location.TABLE, kind="ticket"):
        tag = db.execute(select(Tag).where(Tag.name == tag_name)).scalar_one_or_none()
        if tag is None:
            tag = Tag(name=tag_name, owner=row.owner)
            db.add(tag)
        attached = TagResource(
            tag=tag,
            resource_type=kind,
            resource=row.id,
            resource_uuid=row.uuid,
            resource_location=int(location),
        )
        db.add(attached)
        db.commit()
        return attached

    return _label
