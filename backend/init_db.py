"""
Database initialization script
Run this to create tables and seed sample shop data
"""
from datetime import datetime
from decimal import Decimal

from consignshop.core.database import engine, Base, SessionLocal
from consignshop.models import Agreement, Consignor, Product, ProductStatus, UnsoldItemPolicy


def init_db():
    """Initialize database with tables"""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("✓ Tables created successfully")


def seed_data():
    """Seed a consignor with two shelved products and their agreements"""
    db = SessionLocal()

    try:
        print("\nSeeding initial data...")

        consignor = db.query(Consignor).filter(Consignor.email == "margaret@example.com").first()
        if not consignor:
            consignor = Consignor(
                full_name="Margaret Ellis",
                email="margaret@example.com",
                phone_number="555-0142",
                address="12 Orchard Lane",
            )
            db.add(consignor)
            db.flush()
            print("✓ Sample consignor created (Margaret Ellis)")

        products = [
            {
                "name": "Oak Side Table",
                "category": "Furniture",
                "condition": "Good",
                "expected_price": Decimal("120.00"),
                "minimum_price": Decimal("90.00"),
                "quantity": 1,
                "barcode": "CS-0001",
                "commission_rate": Decimal("0.40"),
            },
            {
                "name": "Wool Coat",
                "category": "Clothing",
                "condition": "Like New",
                "expected_price": Decimal("65.00"),
                "minimum_price": Decimal("45.00"),
                "quantity": 2,
                "barcode": "CS-0002",
                "commission_rate": Decimal("0.35"),
            },
        ]

        for data in products:
            rate = data.pop("commission_rate")
            existing = db.query(Product).filter(Product.barcode == data["barcode"]).first()
            if existing:
                continue

            product = Product(consignor_id=consignor.id, status=ProductStatus.IN_STOCK.value, **data)
            db.add(product)
            db.flush()
            db.add(Agreement(
                product_id=product.id,
                consignor_id=consignor.id,
                commission_rate=rate,
                unsold_item_policy=UnsoldItemPolicy.KEEP.value,
                agreement_acknowledged=True,
                acknowledgment_date=datetime.utcnow(),
            ))
            print(f"✓ Created {data['name']} at {rate:.0%} commission")

        db.commit()
        print("\n✓ Database seeded successfully!")

    except Exception as e:
        print(f"\n✗ Error seeding data: {e}")
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    print("=" * 60)
    print("Consignment Shop - Database Initialization")
    print("=" * 60)

    init_db()
    seed_data()

    print("\n" + "=" * 60)
    print("Initialization complete!")
    print("=" * 60)
    print("\nYou can now access:")
    print("  - API: http://localhost:8000")
    print("  - API Docs: http://localhost:8000/docs")
    print("=" * 60)
