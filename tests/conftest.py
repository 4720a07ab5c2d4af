# ------------------------------------------------------------------------
# File: conftest.py
# Location: tests/conftest.py
# Description:
#     Shared fixtures: an application bound to a fresh in-memory SQLite
#     database with the default seed data, a test client, bearer headers
#     for the seeded admin and trader, a PNG signature data URI and a
#     factory for contracts in any lifecycle state.
# ------------------------------------------------------------------------

import base64
import io
import itertools
from datetime import datetime, timezone

import pytest
from PIL import Image

from kontrak import create_app
from kontrak.core.contracts import generate_access_token
from kontrak.db.models import Contract, ContractStatus, Template, User
from kontrak.db.seed import seed_initial_data
from kontrak.db.session import get_session

TEST_CONFIG = {
    "TESTING": True,
    "DATABASE_URL": "sqlite://",
    "CREATE_TABLES": True,
    "JWT_SECRET": "test-secret-key-for-kontrak-digital",
    "BCRYPT_ROUNDS": 4,
    "DISABLE_WEBHOOKS": True,
    "RATE_LIMIT_MAX_REQUESTS": 10000,
    "FRONTEND_URL": "https://kontrak.test",
}

ADMIN_EMAIL = "admin@tradestation.com"
ADMIN_PASSWORD = "admin123"
TRADER_EMAIL = "hermanzal@trader.com"
TRADER_PASSWORD = "trader123"


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    # Seed in a context that is popped again so each request gets its own session
    with app.app_context():
        seed_initial_data(get_session(), rounds=4)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


def _login(client, email, password):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.get_json()
    return {"Authorization": f"Bearer {response.get_json()['token']}"}


@pytest.fixture
def admin_headers(client):
    return _login(client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def trader_headers(client):
    return _login(client, TRADER_EMAIL, TRADER_PASSWORD)


@pytest.fixture
def signature_data_uri():
    image = Image.new("RGBA", (120, 40), (255, 255, 255, 0))
    for x in range(10, 110):
        image.putpixel((x, 20), (0, 0, 0, 255))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture
def ids(app):
    """Primary keys of the seeded trader, admin and default template."""
    with app.app_context():
        session = get_session()
        return {
            "admin": session.query(User).filter_by(email=ADMIN_EMAIL).one().id,
            "trader": session.query(User).filter_by(email=TRADER_EMAIL).one().id,
            "template": session.query(Template).one().id,
        }


@pytest.fixture
def make_contract(app, ids):
    """Insert a contract for the seeded trader and return its id, number and token."""
    numbers = itertools.count(1)

    def factory(status=ContractStatus.sent, content=None, variables=None, amount=50000000,
                expiry_date=None, signature_data=None, signed_at=None, use_template=True):
        with app.app_context():
            session = get_session()
            contract = Contract(
                title="Perjanjian Konsultasi",
                number=f"TSC20240305{next(numbers):04d}",
                user_id=ids["trader"],
                template_id=ids["template"] if use_template else None,
                content=content,
                amount=amount,
                status=status,
                variables=variables or {},
                expiry_date=expiry_date,
                signature_data=signature_data,
                signed_at=signed_at,
                access_token=generate_access_token(),
                created_by=ids["admin"],
                created_at=datetime(2024, 3, 5, 2, 0, tzinfo=timezone.utc),
            )
            session.add(contract)
            session.commit()
            return {"id": contract.id, "number": contract.number, "token": contract.access_token}
    return factory
