"""Agreements API — consignment terms, camelCase on the wire."""
import logging
from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, Response, status
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from consignshop.core.database import get_db
from consignshop.core.errors import NotFoundError, ValidationError, map_store_error
from consignshop.models.agreement import Agreement, CharityDonation, ProgressiveDiscount, UnsoldItemPolicy
from consignshop.schemas.agreement import AgreementPayload
from consignshop.services.naming import to_camel_case, to_snake_case

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/agreements", tags=["agreements"])

REQUIRED_FIELDS = ("product_id", "consignor_id", "commission_rate")
INVALID_REFERENCE = "Invalid product or consignor. Both must exist before an agreement can be saved."


def _parse_payload(body: Dict[str, Any]) -> AgreementPayload:
    data = to_snake_case(body) or {}
    if any(data.get(field) in (None, "") for field in REQUIRED_FIELDS):
        raise ValidationError("Missing required fields: productId, consignorId, commissionRate")
    try:
        return AgreementPayload.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError("Invalid agreement data", error=str(e))


def _apply_payload(agreement: Agreement, payload: AgreementPayload) -> None:
    """Copy terms onto the row, dropping fields the chosen policy does not use"""
    policy = payload.unsold_item_policy

    agreement.product_id = payload.product_id
    agreement.consignor_id = payload.consignor_id
    agreement.commission_rate = payload.commission_rate
    agreement.unsold_item_policy = policy.value if policy else None
    agreement.return_fallback_days = payload.return_fallback_days if policy == UnsoldItemPolicy.RETURN else None
    agreement.agreement_acknowledged = payload.agreement_acknowledged
    agreement.acknowledgment_date = payload.acknowledgment_date
    agreement.store_purchase_option = payload.store_purchase_option
    agreement.store_purchase_percentage = payload.store_purchase_percentage

    agreement.discount_schedule_enabled = len(payload.discount_schedule) > 0
    agreement.progressive_discounts = [
        ProgressiveDiscount(days_after_listing=step.days, discount_percent=step.percent)
        for step in payload.discount_schedule
    ]

    charity = payload.charity_choice if policy == UnsoldItemPolicy.DONATE else None
    agreement.charity_donations = [CharityDonation(charity_choice=charity)] if charity else []


def _serialize(agreement: Agreement) -> Dict[str, Any]:
    discounts = agreement.progressive_discounts
    data = {
        "id": agreement.id,
        "product_id": agreement.product_id,
        "consignor_id": agreement.consignor_id,
        "commission_rate": float(agreement.commission_rate),
        "unsold_item_policy": agreement.unsold_item_policy,
        "return_fallback_days": agreement.return_fallback_days,
        "store_purchase_option": agreement.store_purchase_option,
        "store_purchase_percentage": float(agreement.store_purchase_percentage or 0),
        "agreement_acknowledged": agreement.agreement_acknowledged,
        "acknowledgment_date": agreement.acknowledgment_date,
        "created_at": agreement.created_at,
        "updated_at": agreement.updated_at,
        "progressive_discounts": [
            {"id": d.id, "days_after_listing": d.days_after_listing, "discount_percent": float(d.discount_percent)}
            for d in discounts
        ],
        "charity_donations": [
            {"id": c.id, "charity_choice": c.charity_choice}
            for c in agreement.charity_donations
        ],
    }
    response = to_camel_case(data)
    response.update({
        "discountPolicy": "discount" if discounts else "none",
        "discountSchedule": [
            {"days": d.days_after_listing, "percent": float(d.discount_percent)}
            for d in discounts
        ],
        "charityChoice": agreement.charity_donations[0].charity_choice if agreement.charity_donations else None,
        "discountScheduleEnabled": len(discounts) > 0,
    })
    return response


def _query(db: Session):
    return db.query(Agreement).options(
        selectinload(Agreement.progressive_discounts),
        selectinload(Agreement.charity_donations),
    )


def _get_agreement(db: Session, agreement_id: int) -> Agreement:
    agreement = _query(db).filter(Agreement.id == agreement_id).first()
    if not agreement:
        raise NotFoundError("Agreement not found")
    return agreement


@router.post("", status_code=status.HTTP_201_CREATED)
def create_agreement(body: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    logger.info(f"POST /api/agreements productId={body.get('productId')} consignorId={body.get('consignorId')}")
    payload = _parse_payload(body)

    agreement = Agreement()
    _apply_payload(agreement, payload)
    db.add(agreement)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(e, "Error creating agreement", foreign_key=INVALID_REFERENCE)

    logger.info(f"Agreement {agreement.id} created for product {payload.product_id}")
    return _serialize(_get_agreement(db, agreement.id))


@router.get("")
def list_agreements(db: Session = Depends(get_db)):
    agreements = _query(db).order_by(Agreement.created_at.desc(), Agreement.id.desc()).all()
    return [_serialize(a) for a in agreements]


@router.get("/{agreement_id}")
def get_agreement(agreement_id: int, db: Session = Depends(get_db)):
    return _serialize(_get_agreement(db, agreement_id))


@router.put("/{agreement_id}")
def update_agreement(agreement_id: int, body: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    """Replace an agreement's terms, including its discount schedule and charity"""
    logger.info(f"PUT /api/agreements/{agreement_id}")
    agreement = _get_agreement(db, agreement_id)
    payload = _parse_payload(body)

    _apply_payload(agreement, payload)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(e, "Error updating agreement", foreign_key=INVALID_REFERENCE)

    db.expire_all()
    return _serialize(_get_agreement(db, agreement_id))


@router.delete("/{agreement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_agreement(agreement_id: int, db: Session = Depends(get_db)):
    agreement = _get_agreement(db, agreement_id)
    db.delete(agreement)
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        raise map_store_error(e, "Error deleting agreement")
    logger.info(f"Agreement {agreement_id} deleted")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
