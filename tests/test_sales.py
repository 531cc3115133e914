"""Sales routes and receipts."""
from datetime import datetime
from decimal import Decimal

from consignshop.models import Product, ProductStatus, SaleItem
from consignshop.services.commission import CommissionService
from consignshop.services.receipt_pdf import generate_receipt_pdf
from tests.conftest import make_agreement, make_consignor, make_product, make_sale


class TestCreateSale:

    def test_lines_snapshot_commission_and_stock(self, client, db):
        consignor = make_consignor(db)
        dresser = make_product(db, consignor, name="Dresser", expected_price=Decimal("250.00"), quantity=1)
        mugs = make_product(db, consignor, name="Mug", expected_price=Decimal("6.00"), quantity=10)
        agreement = make_agreement(db, dresser, "0.40")

        response = client.post("/api/sales", json={
            "customer_name": "Walk-in",
            "payment_method": "card",
            "sale_date": "2024-05-04T14:00:00",
            "items": [
                {"product_id": dresser.id, "quantity": 1, "unit_price": 225.00},
                {"product_id": mugs.id, "quantity": 3},
            ],
        })

        assert response.status_code == 201
        sale = response.json()
        assert sale["invoice_number"].startswith("INV-")
        assert sale["subtotal"] == 243.0
        assert sale["total_amount"] == 243.0

        by_product = {item["product_name"]: item for item in sale["items"]}
        assert by_product["Dresser"]["line_total"] == 225.0
        assert by_product["Dresser"]["commission_rate"] == 0.4
        assert by_product["Dresser"]["commission"] == 90.0
        assert by_product["Dresser"]["agreement_id"] == agreement.id
        assert by_product["Mug"]["unit_price"] == 6.0
        assert by_product["Mug"]["line_total"] == 18.0
        assert by_product["Mug"]["commission"] == 0.0
        assert by_product["Mug"]["consignor_id"] == consignor.id

        db.expire_all()
        assert db.get(Product, dresser.id).quantity == 0
        assert db.get(Product, dresser.id).status == ProductStatus.SOLD.value
        assert db.get(Product, mugs.id).quantity == 7
        assert db.get(Product, mugs.id).status == ProductStatus.IN_STOCK.value

    def test_latest_agreement_wins(self, client, db):
        consignor = make_consignor(db)
        coat = make_product(db, consignor, name="Coat")
        make_agreement(db, coat, "0.30")
        make_agreement(db, coat, "0.45")

        sale = client.post("/api/sales", json={"items": [{"product_id": coat.id}]}).json()
        assert sale["items"][0]["commission_rate"] == 0.45
        assert sale["items"][0]["commission"] == 45.0

    def test_insufficient_quantity_changes_nothing(self, client, db):
        consignor = make_consignor(db)
        plate = make_product(db, consignor, name="Plate", quantity=2)

        response = client.post("/api/sales", json={"items": [{"product_id": plate.id, "quantity": 3}]})

        assert response.status_code == 400
        assert "Insufficient quantity" in response.json()["message"]
        db.expire_all()
        assert db.get(Product, plate.id).quantity == 2
        assert db.query(SaleItem).count() == 0

    def test_unknown_product_and_empty_sale(self, client):
        unknown = client.post("/api/sales", json={"items": [{"product_id": 555}]})
        assert unknown.status_code == 400

        assert client.post("/api/sales", json={"items": []}).status_code == 400

    def test_duplicate_invoice_number(self, client, db):
        consignor = make_consignor(db)
        product = make_product(db, consignor, quantity=5)
        body = {"invoice_number": "INV-0001", "items": [{"product_id": product.id}]}

        assert client.post("/api/sales", json=body).status_code == 201
        assert client.post("/api/sales", json=body).status_code == 409


class TestSaleRecords:

    def test_list_get_and_update(self, client, db):
        consignor = make_consignor(db)
        product = make_product(db, consignor, name="Kettle")
        older = make_sale(db, datetime(2024, 1, 5), [(product, "20.00", "0")])
        newer = make_sale(db, datetime(2024, 2, 5), [(product, "30.00", "0")])

        listed = client.get("/api/sales").json()
        assert [s["id"] for s in listed] == [newer.id, older.id]

        fetched = client.get(f"/api/sales/{older.id}").json()
        assert fetched["items"][0]["product_name"] == "Kettle"

        updated = client.put(f"/api/sales/{older.id}", json={"customer_name": "R. Patel", "notes": "gift wrap"})
        assert updated.status_code == 200
        assert updated.json()["customer_name"] == "R. Patel"
        assert updated.json()["subtotal"] == 20.0

        assert client.put(f"/api/sales/{older.id}", json={}).status_code == 400
        assert client.get("/api/sales/9999").status_code == 404

    def test_update_rejects_null_required_field(self, client, db):
        product = make_product(db, make_consignor(db))
        sale = make_sale(db, datetime(2024, 4, 2), [(product, "40.00", "0")], invoice_number="INV-40")

        response = client.put(f"/api/sales/{sale.id}", json={"invoice_number": None})
        assert response.status_code == 400
        assert "invoice_number" in response.json()["error"]

        assert client.put(f"/api/sales/{sale.id}", json={"sale_date": None}).status_code == 400
        assert client.put(f"/api/sales/{sale.id}", json={"notes": None}).status_code == 200
        assert client.get(f"/api/sales/{sale.id}").json()["invoice_number"] == "INV-40"

    def test_delete(self, client, db):
        consignor = make_consignor(db)
        product = make_product(db, consignor)
        sale = make_sale(db, datetime(2024, 3, 1), [(product, "15.00", "0.10")])

        assert client.delete(f"/api/sales/{sale.id}").status_code == 204
        assert client.get(f"/api/sales/{sale.id}").status_code == 404
        assert db.query(SaleItem).count() == 0

    def test_reported_sale_cannot_be_deleted(self, client, db):
        consignor = make_consignor(db)
        product = make_product(db, consignor)
        sale = make_sale(db, datetime(2024, 3, 1), [(product, "15.00", "0.10")])
        CommissionService(db).get_or_create_report(consignor.id, "2024-03-01", "2024-03-31")

        response = client.delete(f"/api/sales/{sale.id}")

        assert response.status_code == 409
        assert client.get(f"/api/sales/{sale.id}").status_code == 200


class TestReceipt:

    def test_receipt_download(self, client, db):
        consignor = make_consignor(db)
        product = make_product(db, consignor, name="Silk Scarf")
        sale = make_sale(db, datetime(2024, 3, 9, 10, 30), [(product, "35.00", "0.20")], invoice_number="INV-7")

        response = client.get(f"/api/sales/{sale.id}/receipt")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert 'filename="receipt_INV-7.pdf"' in response.headers["content-disposition"]
        assert response.content.startswith(b"%PDF")

    def test_receipt_missing_sale(self, client):
        assert client.get("/api/sales/404/receipt").status_code == 404

    def test_generate_receipt_pdf_without_optional_fields(self):
        pdf = generate_receipt_pdf({
            "store_name": "Test Shop",
            "invoice_number": "INV-1",
            "sale_date": "2024-03-09",
            "items": [{"product_name": None, "quantity": 1, "unit_price": 5, "line_total": 5}],
            "subtotal": 5,
            "total_amount": 5,
        })
        assert pdf.startswith(b"%PDF")
