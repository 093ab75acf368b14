"""
Test configuration and fixtures.

Provides:
- Throwaway SQLite database per test (file-backed so threads can share it)
- Session factory for tests that need more than one session
- HTTPX AsyncClient wired to the test database
- Builders for locations, calendars, periods, and orders
"""
import os
from typing import AsyncGenerator, Generator

# Must be set before booking_api modules read settings
os.environ["TESTING"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_BOOKING"] = "1000/minute"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import Session, sessionmaker

from booking_api.core.deps import get_db
from booking_api.db.base import Base
from booking_api.db.enums import TimeperiodType
from booking_api.db.models import LineItem, Order, Product, ProductVariant
from booking_api.db.session import build_engine
from booking_api.main import app
from booking_api.services import calendar_service, event_service
from helpers import at

# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def session_factory(tmp_path) -> Generator[sessionmaker, None, None]:
    """Fresh schema in a temp SQLite file, torn down after the test."""
    engine = build_engine(f"sqlite:///{tmp_path / 'booking.db'}")
    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture(scope="function")
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX client against the app, one session per request."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def events() -> Generator[list[tuple[str, dict]], None, None]:
    """Record every appointment event emitted during the test."""
    received: list[tuple[str, dict]] = []

    def record(name, payload):
        received.append((name, payload))

    for name in (
        event_service.AppointmentEvents.CREATED,
        event_service.AppointmentEvents.UPDATED,
        event_service.AppointmentEvents.DELETED,
    ):
        event_service.subscribe(name, record)
    yield received
    event_service.clear_subscribers()


# =============================================================================
# Domain builders
# =============================================================================

@pytest.fixture(scope="function")
def location(db: Session):
    loc = calendar_service.create_location(db, name="Downtown")
    db.commit()
    return loc


@pytest.fixture(scope="function")
def calendar(db: Session, location):
    """Calendar with Monday 09:00-17:00 working hours."""
    cal = calendar_service.create_calendar(db, name="Chair 1", location_id=location.id)
    calendar_service.create_timeperiod(
        db, cal.id, TimeperiodType.WORKING_HOUR, at(9), at(17), title="Monday"
    )
    db.commit()
    return cal


@pytest.fixture(scope="function")
def make_order(db: Session):
    """
    Build an order whose items carry the given durations.

    Each entry is ``(variant_minutes, product_minutes)``; ``None`` leaves the
    metadata key out.
    """

    def _make(*durations: tuple[object, object]) -> Order:
        order = Order(email="customer@example.com")
        db.add(order)
        db.flush()
        for i, (variant_minutes, product_minutes) in enumerate(durations):
            product = Product(
                title=f"Service {i}",
                metadata_={"duration_min": product_minutes} if product_minutes is not None else None,
            )
            db.add(product)
            db.flush()
            variant = ProductVariant(
                product_id=product.id,
                title=f"Service {i} / default",
                metadata_={"duration_min": variant_minutes} if variant_minutes is not None else None,
            )
            db.add(variant)
            db.flush()
            db.add(LineItem(order_id=order.id, variant_id=variant.id, title=product.title))
        db.commit()
        return order

    return _make
