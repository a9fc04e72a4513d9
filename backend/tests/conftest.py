"""
Pytest fixtures for GiftGrab backend tests.

Provides test database setup, person/gift/order factories, and test client.
"""

import pytest
from giftgrab import create_app
from giftgrab.actions import EMAIL_SENDER_KEY
from giftgrab.extensions import db
from giftgrab.models import Gift, Person, SourceFormat
from giftgrab.services import order_service
from giftgrab.services.collaborators import LoggingEmailSender


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'GIFTGRAB_RETRY_ATTEMPTS': 2,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def outbox(app):
    """Fresh email sender per test; returns the list of sent messages."""
    sender = LoggingEmailSender()
    app.extensions[EMAIL_SENDER_KEY] = sender
    return sender.sent


@pytest.fixture(scope='function')
def make_person(db_session):
    """Factory: create and commit a Person."""
    def _make(first_name="Pat", last_name="Doe", **kwargs):
        kwargs.setdefault("source_format", SourceFormat.BASIC_NAME.value)
        person = Person(first_name=first_name, last_name=last_name, **kwargs)
        db_session.add(person)
        db_session.commit()
        return person
    return _make


@pytest.fixture(scope='function')
def make_gift(db_session):
    """Factory: create and commit an unclaimed Gift owned by owner."""
    def _make(owner):
        gift = Gift(owner_id=owner.id)
        db_session.add(gift)
        db_session.commit()
        return gift
    return _make


@pytest.fixture(scope='function')
def make_order(db_session):
    """Factory: create a PENDING order through the order service."""
    counter = {"n": 0}

    def _make(applicant, gifts, order_id=None):
        counter["n"] += 1
        result = order_service.create_order(
            applicant,
            gifts,
            order_id or f"order-{counter['n']}",
            f"code-{counter['n']}",
        )
        assert result.is_success, result
        return result.value
    return _make


@pytest.fixture(scope='function')
def cast(make_person):
    """
    The usual participants:
    owner A owns a gift, B and D are applicants, C approves.
    """
    return {
        "owner": make_person("Alice", "Owner"),
        "applicant": make_person("Bob", "Applicant"),
        "approver": make_person("Carol", "Approver"),
        "other_applicant": make_person("Dan", "Applicant"),
    }


@pytest.fixture(scope='function')
def owner_gift(cast, make_gift):
    return make_gift(cast["owner"])
