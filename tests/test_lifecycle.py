# tests/test_lifecycle.py
from datetime import datetime

import pytest
from sqlalchemy import func, select

from ticket_lifecycle.backend.app.errors import (
    EmptyName,
    Immutable,
    NameConflict,
    NotFound,
    PermissionDenied,
    ResourceInUse,
)
from ticket_lifecycle.backend.app.lifecycle.kinds import ResourceKind
from ticket_lifecycle.backend.app.lifecycle.machine import ResourceLifecycle, restore_any
from ticket_lifecycle.backend.app.lifecycle.references import Location, ResourceRef
from ticket_lifecycle.backend.app.lifecycle.relocator import count_dependents
from ticket_lifecycle.backend.app.models import Permission, TagResource, Ticket, TicketTrash
from ticket_lifecycle.backend.app.services.tickets import (
    TICKET_COPY_COLUMNS,
    TICKET_KIND,
    tickets,
)


def _count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def _trash_row(db, resource_uuid):
    return db.execute(
        select(TicketTrash).where(TicketTrash.uuid == resource_uuid)
    ).scalar_one()


def _live_row(db, resource_uuid):
    return db.execute(select(Ticket).where(Ticket.uuid == resource_uuid)).scalar_one_or_none()


def _attributes(row):
    names = ("uuid", "owner", "name", "comment", "creation_time", "modification_time")
    return {name: getattr(row, name) for name in names + TICKET_COPY_COLUMNS}


# ---------------------------------------------------------------------------
# create / modify
# ---------------------------------------------------------------------------


def test_create_sets_owner_identity_and_timestamps(db, alice):
    ticket = tickets.create(db, alice, "T1", "first", host="192.0.2.7", severity=7.5)

    assert ticket.owner == alice.user_id
    assert len(ticket.uuid) == 36
    assert ticket.comment == "first"
    assert ticket.host == "192.0.2.7"
    assert ticket.creation_time is not None
    assert ticket.creation_time == ticket.modification_time


def test_create_defaults_comment_to_empty(db, alice):
    assert tickets.create(db, alice, "T1").comment == ""


def test_create_rejects_blank_name(db, alice):
    with pytest.raises(EmptyName):
        tickets.create(db, alice, "  ")
    assert _count(db, Ticket) == 0


def test_create_rejects_unknown_attribute(db, alice):
    with pytest.raises(TypeError):
        tickets.create(db, alice, "T1", colour="red")


def test_create_name_conflict_for_same_owner(db, alice, bob):
    tickets.create(db, alice, "T1")

    with pytest.raises(NameConflict):
        tickets.create(db, alice, "T1")
    tickets.create(db, bob, "T1")

    assert _count(db, Ticket) == 2


def test_create_requires_permission(db, observer):
    with pytest.raises(PermissionDenied):
        tickets.create(db, observer, "T1")
    assert _count(db, Ticket) == 0


def test_modify_updates_name_and_comment(db, alice, make_ticket):
    ticket = make_ticket(alice, "T1", "old")
    created = ticket.modification_time

    modified = tickets.modify(db, alice, ticket.uuid, name="T2", comment="new")

    assert modified.name == "T2"
    assert modified.comment == "new"
    assert modified.modification_time >= created


def test_modify_edits_are_independent(db, alice, make_ticket):
    ticket = make_ticket(alice, "T1", "keep me")

    tickets.modify(db, alice, ticket.uuid, name="T2")
    assert _live_row(db, ticket.uuid).comment == "keep me"

    tickets.modify(db, alice, ticket.uuid, comment="changed")
    assert _live_row(db, ticket.uuid).name == "T2"


def test_modify_may_keep_own_name(db, alice, make_ticket):
    ticket = make_ticket(alice, "T1")
    assert tickets.modify(db, alice, ticket.uuid, name="T1").name == "T1"


def test_modify_blank_name_changes_nothing(db, alice, make_ticket):
    ticket = make_ticket(alice, "T1", "old")

    with pytest.raises(EmptyName):
        tickets.modify(db, alice, ticket.uuid, name="", comment="new")

    row = _live_row(db, ticket.uuid)
    assert (row.name, row.comment) == ("T1", "old")


def test_modify_name_conflict(db, alice, make_ticket):
    make_ticket(alice, "T1")
    second = make_ticket(alice, "T2")

    with pytest.raises(NameConflict):
        tickets.modify(db, alice, second.uuid, name="T1")
    assert _live_row(db, second.uuid).name == "T2"


def test_modify_unknown_or_foreign_ticket_is_not_found(db, alice, bob, make_ticket):
    ticket = make_ticket(alice, "T1")

    with pytest.raises(NotFound):
        tickets.modify(db, alice, "no-such-uuid", name="x")
    with pytest.raises(NotFound):
        tickets.modify(db, bob, ticket.uuid, name="x")


def test_modify_through_grant_checks_owner_names(db, alice, bob, make_ticket, grant):
    make_ticket(alice, "Taken")
    ticket = make_ticket(alice, "T1")
    make_ticket(bob, "Bobs")
    grant(bob, "modify_ticket", ticket)

    with pytest.raises(NameConflict):
        tickets.modify(db, bob, ticket.uuid, name="Taken")
    assert tickets.modify(db, bob, ticket.uuid, name="Bobs").name == "Bobs"


def test_modify_requires_permission(db, alice, observer, make_ticket):
    ticket = make_ticket(alice, "T1")
    with pytest.raises(PermissionDenied):
        tickets.modify(db, observer, ticket.uuid, name="x")


# ---------------------------------------------------------------------------
# soft delete / purge
# ---------------------------------------------------------------------------


def test_soft_delete_moves_row_and_dependents(db, alice, bob, make_ticket, grant, label):
    ticket = make_ticket(alice, "T1", host="192.0.2.1")
    old_id, ticket_uuid = ticket.id, ticket.uuid
    before = _attributes(ticket)
    grant(bob, "get_tickets", ticket)
    label(ticket, "triage")

    tickets.delete(db, alice, ticket_uuid)

    assert _live_row(db, ticket_uuid) is None
    trashed = _trash_row(db, ticket_uuid)
    assert _attributes(trashed) == before
    assert count_dependents(db, ResourceRef("ticket", old_id, Location.TABLE)) == (0, 0)
    assert count_dependents(db, ResourceRef("ticket", trashed.id, Location.TRASH)) == (1, 1)


def test_soft_delete_twice_is_a_no_op(db, alice, make_ticket):
    ticket = make_ticket(alice, "T1")
    ticket_uuid = ticket.uuid

    tickets.delete(db, alice, ticket_uuid)
    trash_id = _trash_row(db, ticket_uuid).id
    tickets.delete(db, alice, ticket_uuid)

    assert _count(db, TicketTrash) == 1
    assert _trash_row(db, ticket_uuid).id == trash_id


def test_delete_unknown_ticket_is_not_found(db, alice, bob, make_ticket):
    ticket = make_ticket(alice, "T1")

    with pytest.raises(NotFound):
        tickets.delete(db, alice, "no-such-uuid")
    with pytest.raises(NotFound):
        tickets.delete(db, bob, ticket.uuid)
    assert _live_row(db, ticket.uuid) is not None


def test_delete_requires_permission(db, alice, observer, make_ticket, grant, label):
    ticket = make_ticket(alice, "T1")
    grant(observer, "delete_ticket", ticket)
    label(ticket)

    with pytest.raises(PermissionDenied):
        tickets.delete(db, observer, ticket.uuid)

    assert _live_row(db, ticket.uuid) is not None
    assert _count(db, TicketTrash) == 0
    assert count_dependents(db, ResourceRef("ticket", ticket.id)) == (1, 1)


def test_ultimate_delete_of_live_ticket_skips_trash(db, alice, bob, make_ticket, grant, label):
    ticket = make_ticket(alice, "T1")
    ticket_uuid = ticket.uuid
    permission = grant(bob, "get_tickets", ticket)
    label(ticket)

    tickets.delete(db, alice, ticket_uuid, ultimate=True)

    assert _live_row(db, ticket_uuid) is None
    assert _count(db, TicketTrash) == 0
    assert _count(db, TagResource) == 0
    db.refresh(permission)
    assert permission.resource is None
    assert permission.resource_uuid == ticket_uuid


def test_ultimate_delete_of_trashed_ticket(db, alice, bob, make_ticket, grant, label):
    ticket = make_ticket(alice, "T1")
    ticket_uuid = ticket.uuid
    permission = grant(bob, "get_tickets", ticket)
    label(ticket)
    tickets.delete(db, alice, ticket_uuid)

    tickets.delete(db, alice, ticket_uuid, ultimate=True)

    assert _count(db, TicketTrash) == 0
    assert _count(db, TagResource) == 0
    db.refresh(permission)
    assert permission.resource is None


def test_purged_ticket_is_gone_for_good(db, alice, make_ticket):
    ticket = make_ticket(alice, "T1")
    ticket_uuid = ticket.uuid
    tickets.delete(db, alice, ticket_uuid)
    tickets.delete(db, alice, ticket_uuid, ultimate=True)

    with pytest.raises(NotFound):
        tickets.restore(db, alice, ticket_uuid)
    with pytest.raises(NotFound):
        tickets.get(db, alice, ticket_uuid)
    with pytest.raises(NotFound):
        tickets.get(db, alice, ticket_uuid, trash=True)
    with pytest.raises(NotFound):
        tickets.delete(db, alice, ticket_uuid, ultimate=True)


def test_no_dependent_left_dangling_after_purge(db, alice, bob, make_ticket, grant, label):
    ticket = make_ticket(alice, "T1")
    grant(bob, "get_tickets", ticket)
    label(ticket)
    tickets.delete(db, alice, ticket.uuid, ultimate=True)

    dangling = db.execute(
        select(func.count())
        .select_from(Permission)
        .where(Permission.resource.is_not(None), Permission.resource_type == "ticket")
    ).scalar_one()
    assert dangling == 0


# ---------------------------------------------------------------------------
# restore
# ---------------------------------------------------------------------------


def test_restore_round_trip(db, alice, bob, make_ticket, grant, label):
    ticket = make_ticket(
        alice,
        "T1",
        "comment",
        host="192.0.2.9",
        severity=9.8,
        solution_type="VendorFix",
        open_time=datetime(2024, 5, 1, 12, 0),
    )
    original_id, ticket_uuid = ticket.id, ticket.uuid
    before = _attributes(ticket)
    grant(bob, "get_tickets", ticket)
    grant(bob, "modify_ticket", ticket)
    label(ticket, "a")

    tickets.delete(db, alice, ticket_uuid)
    restored = tickets.restore(db, alice, ticket_uuid)

    assert _attributes(restored) == before
    assert restored.id != original_id
    assert _count(db, TicketTrash) == 0
    assert count_dependents(db, ResourceRef("ticket", restored.id, Location.TABLE)) == (2, 1)


def test_restore_not_in_trash(db, alice, make_ticket):
    ticket = make_ticket(alice, "T1")
    with pytest.raises(NotFound):
        tickets.restore(db, alice, ticket.uuid)
    with pytest.raises(NotFound):
        tickets.restore(db, alice, "no-such-uuid")


def test_restore_name_conflict_leaves_trash_untouched(db, alice, bob, make_ticket, grant, label):
    ticket = make_ticket(alice, "T1")
    ticket_uuid = ticket.uuid
    grant(bob, "get_tickets", ticket)
    label(ticket)
    tickets.delete(db, alice, ticket_uuid)
    trashed = _trash_row(db, ticket_uuid)
    trash_ref = ResourceRef("ticket", trashed.id, Location.TRASH)

    make_ticket(alice, "T1")
    with pytest.raises(NameConflict):
        tickets.restore(db, alice, ticket_uuid)

    assert _trash_row(db, ticket_uuid).id == trash_ref.id
    assert count_dependents(db, trash_ref) == (1, 1)
    assert _count(db, Ticket) == 1


def test_restore_requires_permission(db, alice, observer, make_ticket):
    ticket_uuid = make_ticket(alice, "T1").uuid
    tickets.delete(db, alice, ticket_uuid)
    with pytest.raises(PermissionDenied):
        tickets.restore(db, observer, ticket_uuid)


def test_restore_any_finds_the_kind(db, alice, make_ticket):
    ticket_uuid = make_ticket(alice, "T1").uuid
    tickets.delete(db, alice, ticket_uuid)

    restored = restore_any(db, alice, ticket_uuid, kinds=[TICKET_KIND])

    assert restored.uuid == ticket_uuid
    assert _count(db, TicketTrash) == 0


def test_restore_any_unknown_uuid(db, alice):
    with pytest.raises(NotFound):
        restore_any(db, alice, "no-such-uuid", kinds=[TICKET_KIND])


# ---------------------------------------------------------------------------
# copy
# ---------------------------------------------------------------------------


def test_copy_clones_attributes_under_new_identity(db, alice, bob, make_ticket, grant, label):
    source = make_ticket(alice, "T1", "note", host="192.0.2.3", status="solved", task=4)
    grant(bob, "get_tickets", source)
    label(source, "a")

    clone = tickets.copy(db, alice, source.uuid)

    assert clone.uuid != source.uuid
    assert clone.name == "T1 Clone 1"
    assert clone.comment == "note"
    assert clone.owner == alice.user_id
    for column in TICKET_COPY_COLUMNS:
        assert getattr(clone, column) == getattr(source, column)
    assert count_dependents(db, ResourceRef("ticket", clone.id)) == (0, 1)


def test_copy_with_explicit_name_and_comment(db, alice, make_ticket):
    source = make_ticket(alice, "T1", "note")
    clone = tickets.copy(db, alice, source.uuid, name="T2", comment="")
    assert (clone.name, clone.comment) == ("T2", "")


def test_copy_name_conflict(db, alice, make_ticket):
    make_ticket(alice, "T2")
    source = make_ticket(alice, "T1")
    with pytest.raises(NameConflict):
        tickets.copy(db, alice, source.uuid, name="T2")
    assert _count(db, Ticket) == 2


def test_copy_of_granted_ticket_belongs_to_copier(db, alice, bob, make_ticket, grant):
    source = make_ticket(alice, "T1")
    grant(bob, "get_tickets", source)

    clone = tickets.copy(db, bob, source.uuid)

    assert clone.owner == bob.user_id
    assert clone.name == "T1"


def test_copy_unknown_or_trashed_source(db, alice, make_ticket):
    source_uuid = make_ticket(alice, "T1").uuid
    tickets.delete(db, alice, source_uuid)
    with pytest.raises(NotFound):
        tickets.copy(db, alice, source_uuid)
    with pytest.raises(NotFound):
        tickets.copy(db, alice, "no-such-uuid")


# ---------------------------------------------------------------------------
# capability checks
# ---------------------------------------------------------------------------


@pytest.fixture()
def guarded():
    kind = ResourceKind(
        name="ticket",
        model=Ticket,
        trash_model=TicketTrash,
        copy_columns=TICKET_COPY_COLUMNS,
        is_predefined=lambda row: row.name == "Default",
        in_use=lambda db, row, location: row.status == "busy",
    )
    return ResourceLifecycle(kind)


def test_predefined_resource_is_immutable(db, alice, guarded):
    row = guarded.create(db, alice, "Default")

    with pytest.raises(Immutable):
        guarded.modify(db, alice, row.uuid, comment="x")
    with pytest.raises(Immutable):
        guarded.delete(db, alice, row.uuid)
    with pytest.raises(Immutable):
        guarded.delete(db, alice, row.uuid, ultimate=True)

    assert _live_row(db, row.uuid).comment == ""
    assert _count(db, TicketTrash) == 0


def test_in_use_resource_cannot_be_removed(db, alice, guarded):
    row = guarded.create(db, alice, "Scanner", status="busy")

    with pytest.raises(ResourceInUse):
        guarded.delete(db, alice, row.uuid)
    assert _live_row(db, row.uuid) is not None
    assert not guarded.writable(db, row, Location.TRASH)
    assert guarded.writable(db, row, Location.TABLE)
