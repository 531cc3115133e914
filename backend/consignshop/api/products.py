"""Products API — consignor directory, inventory, barcode lookup and shelf locations."""
import logging
from typing import List
from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from consignshop.core.database import get_db
from consignshop.core.errors import NotFoundError, ValidationError, map_store_error
from consignshop.models.consignor import Consignor as ConsignorModel
from consignshop.models.product import (
    Product as ProductModel,
    ProductLocation as ProductLocationModel,
    ProductStatus,
    SELLABLE_STATUSES,
)
from consignshop.schemas.consignor import Consignor, ConsignorCreate, ConsignorUpdate
from consignshop.schemas.product import (
    Product, ProductCreate, ProductForSale, ProductLocation, ProductLocationUpdate, ProductUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/products", tags=["products"])

DUPLICATE_EMAIL = "A consignor with this email already exists."
INVALID_CONSIGNOR = "Invalid Consignor ID. Consignor does not exist."
CONSIGNOR_IN_USE = (
    "Cannot delete consignor. Products, agreements or commission reports still reference this consignor."
)


def _for_sale(product: ProductModel) -> ProductForSale:
    data = Product.model_validate(product).model_dump()
    consignor_name = product.consignor.full_name if product.consignor else "N/A"
    return ProductForSale(**data, price=float(product.expected_price), consignor_name=consignor_name)


def _get_product(db: Session, product_id: int) -> ProductModel:
    product = db.query(ProductModel).filter(ProductModel.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found.")
    return product


def _get_consignor(db: Session, consignor_id: int) -> ConsignorModel:
    consignor = db.query(ConsignorModel).filter(ConsignorModel.id == consignor_id).first()
    if not consignor:
        raise NotFoundError("Consignor not found.")
    return consignor


@router.get("/test-connection", response_class=PlainTextResponse)
def test_connection():
    return "Backend connection successful!"


# ══════════════════════════════════════════════════════════════════
# CONSIGNORS
# ══════════════════════════════════════════════════════════════════

@router.post("/add-consignor", status_code=status.HTTP_201_CREATED)
def add_consignor(body: ConsignorCreate, db: Session = Depends(get_db)):
    logger.info(f"POST /api/products/add-consignor email={body.email}")
    consignor = ConsignorModel(**body.model_dump())
    db.add(consignor)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(e, "Error adding consignor", unique=DUPLICATE_EMAIL)
    db.refresh(consignor)
    return {"message": "Consignor added successfully!", "data": Consignor.model_validate(consignor)}


@router.get("/consignors", response_model=List[Consignor])
def list_consignors(db: Session = Depends(get_db)):
    return db.query(ConsignorModel).order_by(ConsignorModel.full_name).all()


@router.get("/consignors/{consignor_id}", response_model=Consignor)
def get_consignor(consignor_id: int, db: Session = Depends(get_db)):
    return _get_consignor(db, consignor_id)


@router.put("/consignors/{consignor_id}", response_model=Consignor)
def update_consignor(consignor_id: int, body: ConsignorUpdate, db: Session = Depends(get_db)):
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No valid fields provided for update.")

    consignor = _get_consignor(db, consignor_id)
    for field, value in updates.items():
        setattr(consignor, field, value)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(e, "Error updating consignor", unique=DUPLICATE_EMAIL)
    db.refresh(consignor)
    logger.info(f"Consignor {consignor_id} updated: {sorted(updates)}")
    return consignor


@router.delete("/consignors/{consignor_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_consignor(consignor_id: int, db: Session = Depends(get_db)):
    consignor = _get_consignor(db, consignor_id)
    db.delete(consignor)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(
            e,
            "Error deleting consignor",
            foreign_key=CONSIGNOR_IN_USE,
            foreign_key_conflict=True,
        )
    logger.info(f"Consignor {consignor_id} deleted")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ══════════════════════════════════════════════════════════════════
# PRODUCTS (static routes before /{product_id})
# ══════════════════════════════════════════════════════════════════

@router.get("", response_model=List[Product])
def list_products(db: Session = Depends(get_db)):
    return (
        db.query(ProductModel)
        .options(joinedload(ProductModel.consignor))
        .order_by(ProductModel.created_at.desc(), ProductModel.id.desc())
        .all()
    )


@router.get("/barcode/{barcode}", response_model=ProductForSale)
def get_product_by_barcode(barcode: str, db: Session = Depends(get_db)):
    """Register lookup by scanned barcode"""
    product = (
        db.query(ProductModel)
        .options(joinedload(ProductModel.consignor))
        .filter(ProductModel.barcode == barcode)
        .first()
    )
    if not product:
        raise NotFoundError("Product not found.")
    return _for_sale(product)


@router.get("/eligible-for-sale", response_model=List[ProductForSale])
def list_products_eligible_for_sale(db: Session = Depends(get_db)):
    """In-stock products with quantity left"""
    products = (
        db.query(ProductModel)
        .options(joinedload(ProductModel.consignor))
        .filter(ProductModel.quantity > 0, ProductModel.status.in_(SELLABLE_STATUSES))
        .order_by(ProductModel.name)
        .all()
    )
    return [_for_sale(p) for p in products]


@router.post("", response_model=Product, status_code=status.HTTP_201_CREATED)
def create_product(body: ProductCreate, db: Session = Depends(get_db)):
    logger.info(f"POST /api/products name={body.name} consignor_id={body.consignor_id}")
    product = ProductModel(**body.model_dump(), status=ProductStatus.PENDING.value)
    db.add(product)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(
            e,
            "Error adding product",
            unique="A product with this barcode already exists.",
            foreign_key=INVALID_CONSIGNOR,
        )
    db.refresh(product)
    return product


@router.get("/{product_id}", response_model=Product)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _get_product(db, product_id)


@router.put("/{product_id}", response_model=Product)
def update_product(product_id: int, body: ProductUpdate, db: Session = Depends(get_db)):
    updates = body.model_dump(exclude_unset=True)
    if not updates:
        raise ValidationError("No valid fields provided for update.")

    product = _get_product(db, product_id)
    for field, value in updates.items():
        setattr(product, field, value)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(
            e,
            "Error updating product",
            unique="A product with this barcode already exists.",
            foreign_key=INVALID_CONSIGNOR,
        )
    db.refresh(product)
    return product


@router.put("/{product_id}/location", response_model=ProductLocation)
def update_product_location(product_id: int, body: ProductLocationUpdate, db: Session = Depends(get_db)):
    """Shelve a product: upsert its location and put it in stock with the shelved quantity"""
    product = _get_product(db, product_id)

    location = product.location
    if location is None:
        location = ProductLocationModel(product_id=product.id)
        product.location = location
    for field, value in body.model_dump().items():
        setattr(location, field, value)

    product.status = ProductStatus.IN_STOCK.value
    product.quantity = body.quantity
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(e, "Error updating product location")
    db.refresh(location)
    logger.info(f"Product {product_id} shelved at {body.floor}/{body.aisle}/{body.rack_shelf}/{body.bin_number}")
    return location


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    product = _get_product(db, product_id)
    db.delete(product)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(e, "Error deleting product")
    logger.info(f"Product {product_id} deleted")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
