from consignshop.models.consignor import Consignor
from consignshop.models.product import Product, ProductLocation, ProductStatus
from consignshop.models.agreement import Agreement, ProgressiveDiscount, CharityDonation, UnsoldItemPolicy
from consignshop.models.sale import SaleHeader, SaleItem
from consignshop.models.commission import (
    CommissionTracking, CommissionItem, CommissionPayment, CommissionStatus,
)

__all__ = [
    "Consignor",
    "Product",
    "ProductLocation",
    "ProductStatus",
    "Agreement",
    "ProgressiveDiscount",
    "CharityDonation",
    "UnsoldItemPolicy",
    "SaleHeader",
    "SaleItem",
    "CommissionTracking",
    "CommissionItem",
    "CommissionPayment",
    "CommissionStatus",
]
