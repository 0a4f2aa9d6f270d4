# backend/tests/unit/conftest.py
import pytest
from unittest.mock import Mock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from priceguide.main import app
from priceguide.db import Base, get_db
from priceguide.auth import Principal, create_access_token
from priceguide.enums import Permission
from priceguide.models import Company, Office, MeasureSheetItem
from priceguide.schemas import CategoryCreate
from priceguide.services.audit import AuditSink
from priceguide.services.category_service import CategoryService
from priceguide.services.office_assignment_service import OfficeAssignmentService

# One in-memory DB shared across threads (TestClient) via StaticPool
engine = create_engine(
    "sqlite+pysqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enforce FKs in SQLite (off by default otherwise)
@event.listens_for(engine, "connect")
def _set_sqlite_pragma(dbapi_connection, _):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()

TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)

ALL_PERMISSIONS = [p.value for p in Permission]


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def db_session():
    # services commit, so every test gets freshly created tables
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def test_db(db_session):
    """Alias so tests written for `test_db` use the SQLite session."""
    return db_session

@pytest.fixture(autouse=True)
def _override_get_db():
    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides.clear()

@pytest.fixture
def client():
    return TestClient(app)

@pytest.fixture
def company(db_session):
    company = Company(name="Acme Roofing")
    db_session.add(company)
    db_session.commit()
    db_session.refresh(company)
    return company

@pytest.fixture
def other_company(db_session):
    company = Company(name="Other Exteriors")
    db_session.add(company)
    db_session.commit()
    db_session.refresh(company)
    return company

@pytest.fixture
def offices(db_session, company):
    offices = [
        Office(company_id=company.id, name=name)
        for name in ("Denver", "Austin", "Boise")
    ]
    db_session.add_all(offices)
    db_session.commit()
    for office in offices:
        db_session.refresh(office)
    return offices

@pytest.fixture
def principal(company):
    return Principal(user_id=7, company_id=company.id, permissions=frozenset(ALL_PERMISSIONS))

@pytest.fixture
def other_principal(other_company):
    return Principal(user_id=8, company_id=other_company.id, permissions=frozenset(ALL_PERMISSIONS))

@pytest.fixture
def audit():
    return Mock(spec=AuditSink)

@pytest.fixture
def service(db_session, principal, audit):
    return CategoryService(db_session, principal, audit=audit)

@pytest.fixture
def office_service(db_session, principal, audit):
    return OfficeAssignmentService(db_session, principal, audit=audit)

@pytest.fixture
def make_category(service):
    """Create a category through the service and return its response schema."""
    def _make(name, parent=None, **kwargs):
        parent_id = parent.id if parent is not None else None
        return service.create(CategoryCreate(name=name, parent_id=parent_id, **kwargs))
    return _make

@pytest.fixture
def add_items(db_session, company):
    def _add(category, count=1):
        items = [
            MeasureSheetItem(company_id=company.id, category_id=category.id, name=f"{category.name} item {i}")
            for i in range(count)
        ]
        db_session.add_all(items)
        db_session.commit()
        return items
    return _add

@pytest.fixture
def auth_headers(company):
    token = create_access_token(user_id=7, company_id=company.id, permissions=ALL_PERMISSIONS)
    return {"Authorization": f"Bearer {token}"}

@pytest.fixture
def read_only_headers(company):
    token = create_access_token(user_id=9, company_id=company.id, permissions=[Permission.READ])
    return {"Authorization": f"Bearer {token}"}
