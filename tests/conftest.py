import os

# settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["OPENAI_API_KEY"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""
os.environ["STRIPE_WEBHOOK_SECRET"] = ""

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app
from models.user import User
from schemas import GeneratedDescription
from services.openai_service import get_generator


class FakeGenerator:
    """Stands in for DescriptionGenerator; set `.error` to make generate_description raise."""

    def __init__(self):
        self.calls = 0
        self.error = None
        self.result = GeneratedDescription(
            content="A sturdy widget for every desk.",
            seo_score=9,
            word_count=6,
            keyword_density=4.5,
            suggested_keywords=["desk widget", "office gear"],
        )

    def generate_description(self, request):
        self.calls += 1
        if self.error:
            raise self.error
        return self.result

    def suggest_keywords(self, product_name, category):
        return [f"{product_name} {category}".lower(), "best price"]

    def calculate_seo_score(self, description, keywords):
        return 7


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def generator():
    fake = FakeGenerator()
    app.dependency_overrides[get_generator] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_generator, None)


@pytest.fixture
def client(generator):
    with TestClient(app) as c:
        yield c


def login(client, email="alice@example.com", password="secret123"):
    r = client.post("/login", json={"email": email, "password": password})
    assert r.status_code == 200, f"status={r.status_code} body={r.text}"
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


def user_by_email(db, email="alice@example.com") -> User:
    db.expire_all()
    return db.query(User).filter(User.email == email).first()


@pytest.fixture
def auth(client):
    return login(client)


@pytest.fixture
def other_auth(client):
    return login(client, email="bob@example.com", password="hunter22")
