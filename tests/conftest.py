"""
tests/conftest.py — pytest fixtures for the Flood Verification service
"""
import datetime

import pytest
from app import create_app
from extensions import db
from models.report import FloodReport, Report, WaterIssue
from models.reporter import Reporter
from tests.fakes import FakeProvider, signal


@pytest.fixture(scope="session")
def app():
    """Create a test Flask application."""
    application = create_app("testing")
    with application.app_context():
        db.create_all()
        yield application
        db.drop_all()


@pytest.fixture()
def client(app):
    """Test client for API integration tests."""
    return app.test_client()


@pytest.fixture()
def runner(app):
    return app.test_cli_runner()


@pytest.fixture(autouse=True)
def _clean_tables(request):
    """Empty the report tables after every test that touched the app."""
    yield
    if "app" in request.fixturenames:
        db.session.rollback()
        db.session.query(Report).delete()
        db.session.query(Reporter).delete()
        db.session.commit()


# ── Fake signal providers ─────────────────────────────────────────────────────

@pytest.fixture()
def fake_providers(app):
    """Swap the app's providers for fakes; defaults are weather+news matched."""
    verifier = app.extensions["verifier"]
    originals = (verifier.weather, verifier.news, verifier.social)
    verifier.weather = FakeProvider(signal("matched"))
    verifier.news = FakeProvider(signal("matched"))
    verifier.social = FakeProvider(signal("coming-soon"))
    yield verifier
    verifier.weather, verifier.news, verifier.social = originals


# ── Report factories ──────────────────────────────────────────────────────────

@pytest.fixture()
def reporter(app):
    person = Reporter(name="Asha Patil", email="asha@example.org", trust_score=500)
    db.session.add(person)
    db.session.commit()
    return person


@pytest.fixture()
def make_report(app, reporter):
    """Factory that persists a FloodReport (or WaterIssue) and returns its id."""
    def _make(kind="flood", age_minutes=0, **overrides):
        fields = dict(
            reported_by=reporter,
            latitude=19.07,
            longitude=72.87,
            district="Mumbai",
            state="Maharashtra",
            severity="high",
            description="Water entering ground floor homes",
            created_at=datetime.datetime.utcnow() - datetime.timedelta(minutes=age_minutes),
        )
        fields.update(overrides)
        model = WaterIssue if kind == "water-issue" else FloodReport
        report = model(**fields)
        db.session.add(report)
        db.session.commit()
        return report.id
    return _make
