"""Transient database errors on a real session: retried before the first write only."""
import sqlite3
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from priceguide.exceptions import CategoryNotFound
from priceguide.schemas import CategoryCreate, CategoryMove, CategoryUpdate


class FailingStatements:
    """``do_execute`` hook making the next N statements of a kind fail like a dropped connection."""

    def __init__(self):
        self.pending = {}
        self.failed = 0

    def fail_next(self, verb, times=1):
        self.pending[verb] = times

    def __call__(self, cursor, statement, parameters, context):
        verb = statement.lstrip().split(None, 1)[0].upper()
        if self.pending.get(verb):
            self.pending[verb] -= 1
            self.failed += 1
            raise sqlite3.OperationalError("server closed the connection unexpectedly")


@pytest.fixture
def failing_statements(db_session):
    engine = db_session.get_bind()
    hook = FailingStatements()
    event.listen(engine, "do_execute", hook)
    yield hook
    event.remove(engine, "do_execute", hook)


def test_read_is_retried_on_a_rolled_back_session(service, make_category, db_session, failing_statements):
    root = make_category("Roofing")
    failing_statements.fail_next("SELECT")

    with patch.object(db_session, "rollback", wraps=db_session.rollback) as rollback:
        result = service.get(root.id)

    assert result.name == "Roofing"
    assert failing_statements.failed == 1
    rollback.assert_called()


def test_read_after_a_flushed_write_recovers(service, make_category, db_session, failing_statements):
    root = make_category("Roofing")
    # leave a flushed but uncommitted write in the session transaction
    service.store.find_by_id(root.id).name = "Roofing (draft)"
    db_session.flush()
    failing_statements.fail_next("SELECT")

    result = service.get(root.id)

    assert failing_statements.failed == 1
    assert result.name == "Roofing"


def test_mutation_failing_before_its_first_write_runs_once(service, make_category, failing_statements):
    roofing = make_category("Roofing")
    failing_statements.fail_next("SELECT")

    created = service.create(CategoryCreate(name="Shingles", parent_id=roofing.id))

    assert failing_statements.failed == 1
    assert [c.name for c in service.children(roofing.id)] == ["Shingles"]
    assert created.depth == 1


def test_move_cycle_check_is_retried(service, make_category, failing_statements):
    a = make_category("A")
    d = make_category("D")
    failing_statements.fail_next("SELECT", times=2)

    moved = service.move(a.id, CategoryMove(parent_id=d.id))

    assert failing_statements.failed == 2
    assert moved.depth == 1


def test_office_assignment_is_retried_before_linking(office_service, make_category, offices, failing_statements):
    roofing = make_category("Roofing")
    failing_statements.fail_next("SELECT")

    assigned = office_service.assign(roofing.id, [o.id for o in offices])

    assert failing_statements.failed == 1
    assert assigned == 3
    assert len(office_service.list_offices(roofing.id)) == 3


def test_failed_write_is_not_retried(service, make_category, failing_statements):
    root = make_category("Roofing")
    failing_statements.fail_next("UPDATE")

    with pytest.raises(OperationalError):
        service.update(root.id, CategoryUpdate(version=1, name="Roofing Systems"))

    assert failing_statements.failed == 1
    current = service.get(root.id)
    assert current.name == "Roofing"
    assert current.version == 1


def test_retries_are_bounded(service, make_category, failing_statements):
    root = make_category("Roofing")
    failing_statements.fail_next("SELECT", times=10)

    with pytest.raises(OperationalError):
        service.get(root.id)

    # read_retry_attempts defaults to 3
    assert failing_statements.failed == 3


def test_domain_errors_are_not_retried(service, failing_statements, db_session):
    with patch.object(db_session, "rollback", wraps=db_session.rollback) as rollback:
        with pytest.raises(CategoryNotFound):
            service.update(uuid4(), CategoryUpdate(version=1, name="Nope"))

    assert rollback.call_count == 1
