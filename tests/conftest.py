"""Fixtures for the consignment shop tests.

Each test gets a fresh temp-file SQLite database with every table created,
a ``db`` session on it and a ``client`` whose requests use the same database.
"""
import os
import shutil
import tempfile
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

# Point the module-level engine somewhere harmless before the app is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from consignshop.core.database import Base, build_engine, get_db
from consignshop.main import app
from consignshop.models import (
    Agreement, Consignor, Product, ProductStatus, SaleHeader, SaleItem,
)


@pytest.fixture
def engine():
    """Yield an engine bound to a fresh temp SQLite database."""
    temp_dir = tempfile.mkdtemp(prefix="consignshop-tests-")
    db_path = os.path.join(temp_dir, "test.db")
    engine = build_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(bind=engine)

    try:
        yield engine
    finally:
        engine.dispose()
        shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    """TestClient whose get_db dependency opens sessions on the test database."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_consignor(db, suffix="a", **overrides):
    """Helper: create and commit a consignor."""
    data = {
        "full_name": f"Consignor {suffix.upper()}",
        "email": f"consignor-{suffix}@example.com",
        "phone_number": "555-0100",
        "address": "1 Market Street",
    }
    data.update(overrides)
    consignor = Consignor(**data)
    db.add(consignor)
    db.commit()
    db.refresh(consignor)
    return consignor


def make_product(db, consignor, name="Lamp", **overrides):
    """Helper: create and commit an in-stock product for a consignor."""
    data = {
        "name": name,
        "category": "Home",
        "condition": "Good",
        "expected_price": Decimal("100.00"),
        "minimum_price": Decimal("80.00"),
        "quantity": 1,
        "status": ProductStatus.IN_STOCK.value,
    }
    data.update(overrides)
    product = Product(consignor_id=consignor.id, **data)
    db.add(product)
    db.commit()
    db.refresh(product)
    return product


def make_agreement(db, product, rate):
    agreement = Agreement(
        product_id=product.id,
        consignor_id=product.consignor_id,
        commission_rate=Decimal(str(rate)),
    )
    db.add(agreement)
    db.commit()
    db.refresh(agreement)
    return agreement


def make_sale(db, sale_date, lines, invoice_number=None):
    """Helper: record a sale directly.

    ``lines`` is a list of ``(product, line_total, commission_rate)``; the
    line commission is ``line_total * commission_rate`` rounded to cents.
    """
    sale = SaleHeader(
        invoice_number=invoice_number or f"INV-{sale_date:%Y%m%d%H%M%S%f}",
        sale_date=sale_date,
    )
    subtotal = Decimal("0")
    for product, line_total, rate in lines:
        line_total = Decimal(str(line_total))
        rate = Decimal(str(rate))
        sale.items.append(SaleItem(
            product_id=product.id if product else None,
            consignor_id=product.consignor_id if product else None,
            quantity=1,
            unit_price=line_total,
            line_total=line_total,
            commission_rate=rate,
            commission=(line_total * rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
        ))
        subtotal += line_total
    sale.subtotal = subtotal
    sale.total_amount = subtotal
    db.add(sale)
    db.commit()
    db.refresh(sale)
    return sale


@pytest.fixture
def january_sales(db):
    """Consignor 7 with two January 2024 sale lines: 100 at 10% and 50 at 10%."""
    consignor = make_consignor(db, suffix="seven", id=7)
    chair = make_product(db, consignor, name="Chair")
    vase = make_product(db, consignor, name="Vase", expected_price=Decimal("50.00"))
    make_sale(db, datetime(2024, 1, 10, 11, 30), [(chair, "100.00", "0.10")])
    make_sale(db, datetime(2024, 1, 31, 17, 45), [(vase, "50.00", "0.10")])
    return consignor
