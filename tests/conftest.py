from types import SimpleNamespace

import pytest

from cnc_api import create_app
from cnc_api.auth import issue_token
from cnc_api.config import Config
from cnc_api.extensions import db
from cnc_api.models import ROLE_ADMIN, ROLE_PARTNER, User


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET = "test-secret"
    MAIL_DEFAULT_SENDER = "bookings@example.com"
    RATE_LIMIT_MAX = 10_000


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def users(app):
    with app.app_context():
        partner = User(
            role=ROLE_PARTNER,
            full_name="Paula Partner",
            restaurant_name="Trattoria Uno",
            email="paula@example.com",
            approved=True,
        )
        rival = User(
            role=ROLE_PARTNER,
            full_name="Rico Rival",
            restaurant_name="Bistro Due",
            email="rico@example.com",
            approved=True,
        )
        admin = User(role=ROLE_ADMIN, full_name="Ada Admin", email="ada@example.com", approved=True)
        db.session.add_all([partner, rival, admin])
        db.session.commit()

        return SimpleNamespace(
            partner_id=partner.id,
            rival_id=rival.id,
            admin_id=admin.id,
            partner=_bearer(issue_token(partner)),
            rival=_bearer(issue_token(rival)),
            admin=_bearer(issue_token(admin)),
        )
