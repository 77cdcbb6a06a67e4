import os

# Must be set before storefront is imported: the module-level engine reads them
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_CATALOG"] = "false"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from storefront import models, schemas
from storefront.database import Base, create_db_engine, create_session_factory, get_db
from storefront.main import app


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'storefront.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db(session_factory):
    """
    Single session for service tests. SQLite transactions take the write
    lock at BEGIN, so service tests should not open a second session.
    """
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
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


@pytest.fixture
def make_product(session_factory):
    """Insert a product in its own short transaction and return its id."""
    def _make(name="Widget", price="100.00", stock=5, **extra):
        with session_factory() as session:
            product = models.Product(name=name, price=Decimal(price), stock=stock, **extra)
            session.add(product)
            session.commit()
            return product.id
    return _make


def add_product(db, name="Widget", price="100.00", stock=5, **extra):
    product = models.Product(name=name, price=Decimal(price), stock=stock, **extra)
    db.add(product)
    db.commit()
    return product


def order_request(*lines, **overrides):
    """OrderCreate from (product_id, quantity) pairs."""
    fields = dict(
        user_id="user-1",
        customer_name="Ada Lovelace",
        customer_email="ada@example.com",
        customer_phone="+44 20 7946 0000",
        shipping_address="12 Analytical St, London",
        payment_method="card",
        items=[schemas.OrderItemCreate(product_id=pid, quantity=qty) for pid, qty in lines],
    )
    fields.update(overrides)
    return schemas.OrderCreate(**fields)
