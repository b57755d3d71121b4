import os
from datetime import timedelta

import pytest

os.environ.setdefault("PYTEST_RUNNING", "1")

from fastapi.testclient import TestClient  # noqa: E402

from mindfold.api.main import app  # noqa: E402
from mindfold.db import models  # noqa: E402
from mindfold.db.database import SessionLocal, engine, get_db  # noqa: E402
from mindfold.utils.feature_flags import refresh_feature_flag_cache  # noqa: E402

ADMIN_EMAIL = "admin@example.com"

_CLEARED_ENV = (
    "DEV_MODE",
    "APP_BASE_URL",
    "ALLOW_DEV_MODE",
    "LLM_API_KEY",
    "LLM_FEATURES_ENABLED",
    "USAGE_LIMITS_ENFORCED",
    "VERIFICATION_EMAILS_ENABLED",
    "SMTP_HOST",
    "SMTP_USE_TLS",
    "SMTP_USE_SSL",
    "DODO_PAYMENTS_API_KEY",
    "DODO_PAYMENTS_ENVIRONMENT",
    "DODO_PAYMENTS_RETURN_URL",
    "DODO_WEBHOOK_SECRET",
    "CORS_EXTRA_ORIGINS",
    "BUILD_SHA",
    "BUILD_TIMESTAMP",
    "IMAGE_TAG",
    "VERSION",
)


@pytest.fixture(scope="session", autouse=True)
def _schema():
    models.Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def _test_env(monkeypatch, tmp_path):
    for name in _CLEARED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ADMIN_EMAILS", ADMIN_EMAIL)
    monkeypatch.setenv("DOCUMENT_STORAGE_DIR", str(tmp_path / "documents"))
    monkeypatch.setenv("DOCUMENT_URL_SECRET", "test-document-secret")
    refresh_feature_flag_cache()
    yield
    refresh_feature_flag_cache()


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        for table in reversed(models.Base.metadata.sorted_tables):
            session.execute(table.delete())
        session.commit()
        session.close()


@pytest.fixture
def db(db_session):
    return db_session


@pytest.fixture
def client(db_session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def auth_headers():
    """Identity headers as set by the authenticating proxy."""
    def _headers(email: str, name: str = "Test User") -> dict:
        return {"x-auth-request-email": email, "x-auth-request-user": name}

    return _headers


@pytest.fixture
def make_profile(db_session):
    def _make(email: str = "user@example.com", role: str = "user", full_name: str = "Test User"):
        profile = models.Profile(email=email, role=role, full_name=full_name)
        db_session.add(profile)
        db_session.flush()
        if role == "user":
            db_session.add(models.UserProfile(id=profile.id, subscription_plan="basic"))
        db_session.commit()
        db_session.refresh(profile)
        return profile

    return _make


@pytest.fixture
def make_plan(db_session):
    def _make(
        plan_name: str = "basic",
        price_monthly: float = 9.99,
        price_yearly: float = 99.99,
        quick_reflect_limit: int = 15,
        deep_reflect_limit: int = 5,
        therapist_sessions_per_week: int = 2,
        dodo_product_id=None,
        is_active: bool = True,
    ):
        plan = models.SubscriptionPlan(
            plan_name=plan_name,
            display_name=plan_name.title(),
            price_monthly=price_monthly,
            price_yearly=price_yearly,
            quick_reflect_limit=quick_reflect_limit,
            deep_reflect_limit=deep_reflect_limit,
            therapist_sessions_per_week=therapist_sessions_per_week,
            dodo_product_id=dodo_product_id,
            features=[],
            is_active=is_active,
        )
        db_session.add(plan)
        db_session.commit()
        db_session.refresh(plan)
        return plan

    return _make


@pytest.fixture
def make_subscription(db_session):
    def _make(profile, plan_name: str = "basic", billing_cycle: str = "monthly", dodo_subscription_id=None):
        start = models.now_utc() - timedelta(days=1)
        subscription = models.UserSubscription(
            user_id=profile.id,
            plan_name=plan_name,
            status="active",
            billing_cycle=billing_cycle,
            dodo_subscription_id=dodo_subscription_id,
            amount=9.99,
            currency="USD",
            current_period_start=start,
            current_period_end=start + timedelta(days=30),
        )
        db_session.add(subscription)
        db_session.commit()
        db_session.refresh(subscription)
        return subscription

    return _make


@pytest.fixture
def make_therapist(db_session, make_profile):
    def _make(
        email: str = "therapist@example.com",
        full_name: str = "Dr. Rivera",
        verification_status: str = "approved",
        price_per_session: float = 60.0,
        **fields,
    ):
        profile = make_profile(email=email, role="therapist", full_name=full_name)
        therapist = models.TherapistProfile(
            id=profile.id,
            display_name=full_name,
            description=fields.pop("description", "Cognitive behavioural therapy"),
            verification_status=verification_status,
            qualifications=[],
            **fields,
        )
        db_session.add(therapist)
        db_session.flush()
        service = models.TherapistService(
            therapist_id=therapist.id,
            sessions_per_week=1,
            price_per_session=price_per_session,
            description="Weekly session",
        )
        db_session.add(service)
        db_session.commit()
        db_session.refresh(therapist)
        return therapist, service

    return _make


@pytest.fixture
def make_relationship(db_session):
    def _make(therapist, user, service=None):
        relationship = models.TherapistPatient(
            therapist_id=therapist.id,
            user_id=user.id,
            service_id=service.id if service is not None else None,
            is_active=True,
        )
        db_session.add(relationship)
        db_session.commit()
        db_session.refresh(relationship)
        return relationship

    return _make


@pytest.fixture
def make_entry(db_session):
    def _make(user, entry_date, score: int = 60, content: str = "A day.", **fields):
        entry = models.JournalEntry(
            user_id=user.id,
            entry_date=entry_date,
            content=content,
            mood=fields.pop("mood", "calm"),
            mental_health_score=fields.pop("mental_health_score", score),
            happiness_score=fields.pop("happiness_score", score),
            accountability_score=fields.pop("accountability_score", score),
            stress_score=fields.pop("stress_score", score),
            burnout_risk_score=fields.pop("burnout_risk_score", score),
            **fields,
        )
        db_session.add(entry)
        db_session.commit()
        db_session.refresh(entry)
        return entry

    return _make
