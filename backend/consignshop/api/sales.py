"""Sales API — register sales, commission snapshot per line, receipts."""
import logging
import uuid
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from consignshop.core.config import settings
from consignshop.core.database import get_db
from consignshop.core.errors import NotFoundError, ValidationError, map_store_error
from consignshop.models.agreement import Agreement
from consignshop.models.product import Product, ProductStatus
from consignshop.models.sale import SaleHeader, SaleItem
from consignshop.schemas.sale import Sale, SaleCreate, SaleUpdate, SaleWithItems
from consignshop.services.receipt_pdf import generate_receipt_pdf

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sales", tags=["sales"])

CENT = Decimal("0.01")
DUPLICATE_INVOICE = "A sale with this invoice number already exists."


def _generate_invoice_number() -> str:
    return f"INV-{datetime.utcnow():%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


def _latest_agreement(db: Session, product_id: int, consignor_id: int):
    return (
        db.query(Agreement)
        .filter(Agreement.product_id == product_id, Agreement.consignor_id == consignor_id)
        .order_by(Agreement.created_at.desc(), Agreement.id.desc())
        .first()
    )


def _get_sale(db: Session, sale_id: int) -> SaleHeader:
    sale = (
        db.query(SaleHeader)
        .options(joinedload(SaleHeader.items).joinedload(SaleItem.product))
        .filter(SaleHeader.id == sale_id)
        .first()
    )
    if not sale:
        raise NotFoundError("Sale not found.")
    return sale


@router.post("", response_model=SaleWithItems, status_code=status.HTTP_201_CREATED)
def create_sale(body: SaleCreate, db: Session = Depends(get_db)):
    """Record a sale.

    Each line snapshots the product's consignor and the commission rate of the
    latest agreement for that product/consignor (0 when there is none), then
    takes the sold quantity out of stock. Header, lines and stock changes are
    committed together.
    """
    logger.info(f"POST /api/sales with {len(body.items)} item(s)")

    sale = SaleHeader(
        invoice_number=body.invoice_number or _generate_invoice_number(),
        sale_date=body.sale_date or datetime.utcnow(),
        customer_name=body.customer_name,
        payment_method=body.payment_method,
        notes=body.notes,
    )

    subtotal = Decimal("0")
    for line in body.items:
        product = db.query(Product).filter(Product.id == line.product_id).first()
        if not product:
            db.rollback()
            raise ValidationError(f"Product {line.product_id} not found.")
        if product.quantity < line.quantity:
            db.rollback()
            raise ValidationError(
                f"Insufficient quantity for {product.name}: {product.quantity} available, {line.quantity} requested."
            )

        unit_price = line.unit_price if line.unit_price is not None else product.expected_price
        line_total = (Decimal(line.quantity) * unit_price).quantize(CENT, rounding=ROUND_HALF_UP)

        agreement = _latest_agreement(db, product.id, product.consignor_id)
        rate = agreement.commission_rate if agreement else Decimal("0")
        commission = (line_total * rate).quantize(CENT, rounding=ROUND_HALF_UP)

        sale.items.append(SaleItem(
            product_id=product.id,
            consignor_id=product.consignor_id,
            agreement_id=agreement.id if agreement else None,
            quantity=line.quantity,
            unit_price=unit_price,
            line_total=line_total,
            commission_rate=rate,
            commission=commission,
        ))
        subtotal += line_total

        product.quantity -= line.quantity
        if product.quantity == 0:
            product.status = ProductStatus.SOLD.value

    sale.subtotal = subtotal
    sale.total_amount = subtotal
    db.add(sale)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(e, "Error recording sale", unique=DUPLICATE_INVOICE)

    logger.info(f"Sale {sale.id} ({sale.invoice_number}) recorded: total {subtotal}")
    return _get_sale(db, sale.id)


@router.get("", response_model=List[Sale])
def list_sales(db: Session = Depends(get_db)):
    return db.query(SaleHeader).order_by(SaleHeader.sale_date.desc(), SaleHeader.id.desc()).all()


@router.get("/{sale_id}", response_model=SaleWithItems)
def get_sale(sale_id: int, db: Session = Depends(get_db)):
    return _get_sale(db, sale_id)


@router.put("/{sale_id}", response_model=Sale)
def update_sale(sale_id: int, body: SaleUpdate, db: Session = Depends(get_db)):
    """Edit header fields. Lines and totals are fixed once recorded."""
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No valid fields provided for update.")

    sale = _get_sale(db, sale_id)
    for field, value in updates.items():
        setattr(sale, field, value)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(e, "Error updating sale", unique=DUPLICATE_INVOICE)
    db.refresh(sale)
    return sale


@router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_sale(sale_id: int, db: Session = Depends(get_db)):
    sale = _get_sale(db, sale_id)
    db.delete(sale)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(
            e,
            "Error deleting sale",
            foreign_key="Cannot delete sale. It is already included in a commission report.",
            foreign_key_conflict=True,
        )
    logger.info(f"Sale {sale_id} deleted")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{sale_id}/receipt")
def download_sale_receipt(sale_id: int, db: Session = Depends(get_db)):
    """Download a PDF receipt for a sale"""
    sale = _get_sale(db, sale_id)

    receipt_data = {
        "store_name": settings.STORE_NAME,
        "store_address": settings.STORE_ADDRESS,
        "store_phone": settings.STORE_PHONE,
        "invoice_number": sale.invoice_number,
        "sale_date": sale.sale_date,
        "customer_name": sale.customer_name,
        "payment_method": sale.payment_method,
        "items": [
            {
                "product_name": item.product_name,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "line_total": item.line_total,
            }
            for item in sale.items
        ],
        "subtotal": sale.subtotal,
        "total_amount": sale.total_amount,
    }

    pdf_bytes = generate_receipt_pdf(receipt_data)
    filename = f"receipt_{sale.invoice_number}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
