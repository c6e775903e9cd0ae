import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from delphi_api.core.hashing import Hasher
from delphi_api.db import models
from delphi_api.db.models.protocol import Protocol, Section, Subsection
from delphi_api.db.session import Base, create_db_engine, get_db
from delphi_api.main import app

PASSWORD = "secret-pass"


@pytest.fixture()
def engine():
    engine = create_db_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------------------------
# Factories
# ---------------------------

@pytest.fixture()
def make_user(db):
    def _make(username="alice", email=None):
        user = models.User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=Hasher.hash_password(PASSWORD),
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture()
def user(make_user):
    return make_user()


@pytest.fixture()
def make_task(db, user):
    def _make(title="Task", sensors=(), domains=(), owner=user):
        task = models.Task(title=title, time=5, is_custom=True, created_by=owner.id)
        db.add(task)
        db.flush()
        for sensor in sensors:
            db.add(models.TaskSensor(task_id=task.id, sensor_id=sensor.id))
        for domain in domains:
            db.add(models.TaskDomain(task_id=task.id, domain_id=domain.id))
        db.commit()
        return task
    return _make


@pytest.fixture()
def make_sensor(db):
    def _make(name="Heart Rate Monitor", category="Cardiovascular"):
        sensor = models.Sensor(name=name, category=category)
        db.add(sensor)
        db.commit()
        return sensor
    return _make


@pytest.fixture()
def make_domain(db):
    def _make(name="Exercise"):
        domain = models.Domain(name=name)
        db.add(domain)
        db.commit()
        return domain
    return _make


@pytest.fixture()
def protocol(db, user):
    protocol = Protocol(name="Session A", created_by=user.id)
    db.add(protocol)
    db.commit()
    return protocol


@pytest.fixture()
def section(db, user):
    section = Section(title="Warm-up block", created_by=user.id)
    db.add(section)
    db.commit()
    return section


@pytest.fixture()
def make_subsection(db, user):
    def _make(title="Sub", sensors=()):
        subsection = Subsection(title=title, time=60, created_by=user.id)
        db.add(subsection)
        db.flush()
        for sensor in sensors:
            db.add(models.SubsectionSensor(subsection_id=subsection.id, sensor_id=sensor.id))
        db.commit()
        return subsection
    return _make


@pytest.fixture()
def auth_headers(client, user):
    response = client.post("/auth/login", json={"username": user.username, "password": PASSWORD})
    assert response.status_code == 200, response.text
    token = response.json()["data"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_headers(client, make_user):
    other = make_user("mallory")
    response = client.post("/auth/login", json={"username": other.username, "password": PASSWORD})
    return {"Authorization": f"Bearer {response.json()['data']['access_token']}"}
