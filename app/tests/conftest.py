"""
Pytest configuration and fixtures
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine
from app.main import app
from app.db.base import Base
from app.core.deps import get_db
from app.core.escalation_config import load_escalation_matrix
from app.core.security import hash_password
from app.models import Employee, Role, ContraventionType, ContraventionCategory, Course  # noqa: F401  registers models
from app.services.escalation_evaluator import EscalationEvaluator


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "testpass123"


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def stages_evaluator():
    return EscalationEvaluator(load_escalation_matrix("stages"))


@pytest.fixture
def make_employee(db):
    """Factory for employees with a known password"""
    def _make(emp_code, role=Role.USER, manager=None, active=True, password=DEFAULT_PASSWORD):
        employee = Employee(
            emp_code=emp_code,
            name=f"Employee {emp_code}",
            email=f"{emp_code.lower()}@example.com",
            department="Procurement",
            role=role.value,
            reporting_manager_id=manager.id if manager else None,
            password_hash=hash_password(password),
            active=active,
        )
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee
    return _make


@pytest.fixture
def admin(make_employee):
    return make_employee("ADM001", role=Role.ADMIN)


@pytest.fixture
def approver(make_employee):
    return make_employee("APR001", role=Role.APPROVER)


@pytest.fixture
def manager(make_employee):
    return make_employee("MGR001")


@pytest.fixture
def employee(make_employee, manager):
    return make_employee("EMP001", manager=manager)


@pytest.fixture
def missing_aor_type(db):
    ctype = ContraventionType(
        name="Missing AOR",
        category=ContraventionCategory.DC_PROCUREMENT,
        default_points=3,
        is_active=True,
    )
    db.add(ctype)
    db.commit()
    db.refresh(ctype)
    return ctype


@pytest.fixture
def no_approval_type(db):
    ctype = ContraventionType(
        name="No approval before purchase",
        category=ContraventionCategory.DC_PROCUREMENT,
        default_points=5,
        is_active=True,
    )
    db.add(ctype)
    db.commit()
    db.refresh(ctype)
    return ctype


@pytest.fixture
def course(db):
    course = Course(name="Procurement Compliance Training", points_credit=1, is_active=True)
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def login(client, emp_code, password=DEFAULT_PASSWORD):
    response = client.post("/api/v1/auth/login", json={"emp_code": emp_code, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    """Login helper: auth_headers(employee) -> Authorization header dict"""
    def _headers(employee):
        return login(client, employee.emp_code)
    return _headers
