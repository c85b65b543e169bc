"""
Typed schemas for Shopify REST payloads.

Raw JSON from the Admin API and from webhooks is validated into these models
before anything is written. The Shopify id is the only required field; every
other field is optional with an explicit default. Money values arrive as
strings and are parsed into two-place Decimals; an unparseable amount fails
the record instead of being coerced to zero.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Annotated, Any, Dict, List, Optional, Type

from pydantic import BaseModel, BeforeValidator, AfterValidator, ConfigDict, ValidationError

from storesync.exceptions import RecordValidationError, UnsupportedEntityError
from storesync.utils.helpers import to_naive_utc

ENTITY_CUSTOMERS = "customers"
ENTITY_PRODUCTS = "products"
ENTITY_ORDERS = "orders"

# Sync order matters: orders link to customers that already exist locally
ENTITY_TYPES = (ENTITY_CUSTOMERS, ENTITY_PRODUCTS, ENTITY_ORDERS)

_CENTS = Decimal("0.01")

# Integer digits that fit Numeric(10, 2) money columns and Numeric(8, 2) weights
MONEY_INTEGER_DIGITS = 8
WEIGHT_INTEGER_DIGITS = 6


def _parse_decimal(value: Any, integer_digits: int = MONEY_INTEGER_DIGITS) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("boolean is not a decimal amount")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"not a decimal amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"not a finite amount: {value!r}")
    if abs(amount) >= Decimal(10) ** integer_digits:
        raise ValueError(f"amount out of range: {value!r}")
    try:
        return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"amount out of range: {value!r}")


def _parse_weight(value: Any) -> Optional[Decimal]:
    return _parse_decimal(value, WEIGHT_INTEGER_DIGITS)


def _parse_amount_or_zero(value: Any) -> Decimal:
    amount = _parse_decimal(value)
    return Decimal("0.00") if amount is None else amount


def _blank_to_none(value: Any) -> Any:
    return None if value == "" else value


def _none_to_zero(value: Any) -> Any:
    return 0 if value is None else value


def _stringify(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _join_tags(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(tag) for tag in value)
    return value


Amount = Annotated[Optional[Decimal], BeforeValidator(_parse_decimal)]
SourceDatetime = Annotated[Optional[datetime], BeforeValidator(_blank_to_none), AfterValidator(to_naive_utc)]
Count = Annotated[int, BeforeValidator(_none_to_zero)]


class ShopifyRecord(BaseModel):
    """Common shape: Shopify id plus source timestamps"""
    model_config = ConfigDict(extra="ignore")

    id: int
    created_at: SourceDatetime = None
    updated_at: SourceDatetime = None

    @property
    def source_updated_at(self) -> Optional[datetime]:
        """Timestamp used for checkpoint tracking"""
        return self.updated_at or self.created_at


class CustomerRecord(ShopifyRecord):
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    total_spent: Annotated[Decimal, BeforeValidator(_parse_amount_or_zero)] = Decimal("0.00")
    orders_count: Count = 0


class VariantRecord(ShopifyRecord):
    title: Optional[str] = None
    price: Amount = None
    sku: Optional[str] = None
    inventory_quantity: Count = 0
    weight: Annotated[Optional[Decimal], BeforeValidator(_parse_weight)] = None


class ProductRecord(ShopifyRecord):
    title: Optional[str] = None
    body_html: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    handle: Optional[str] = None
    tags: Annotated[Optional[str], BeforeValidator(_join_tags)] = None
    status: Optional[str] = None
    published_at: SourceDatetime = None
    variants: Annotated[List[VariantRecord], BeforeValidator(lambda v: v or [])] = []


class EmbeddedCustomer(BaseModel):
    """Customer reference embedded in orders, carts and checkouts"""
    model_config = ConfigDict(extra="ignore")

    id: int


class LineItemRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    quantity: Annotated[int, BeforeValidator(lambda v: 1 if v is None else v)] = 1
    price: Amount = None
    title: Optional[str] = None
    variant_title: Optional[str] = None
    sku: Optional[str] = None


class OrderRecord(ShopifyRecord):
    order_number: Annotated[Optional[str], BeforeValidator(_stringify)] = None
    customer: Optional[EmbeddedCustomer] = None
    total_price: Amount = None
    subtotal_price: Amount = None
    total_tax: Amount = None
    currency: Optional[str] = None
    financial_status: Optional[str] = None
    fulfillment_status: Optional[str] = None
    shipping_address: Optional[Dict[str, Any]] = None
    billing_address: Optional[Dict[str, Any]] = None
    line_items: Annotated[List[LineItemRecord], BeforeValidator(lambda v: v or [])] = []


RECORD_SCHEMAS: Dict[str, Type[ShopifyRecord]] = {
    ENTITY_CUSTOMERS: CustomerRecord,
    ENTITY_PRODUCTS: ProductRecord,
    ENTITY_ORDERS: OrderRecord,
}


def schema_for(entity_type: str) -> Type[ShopifyRecord]:
    try:
        return RECORD_SCHEMAS[entity_type]
    except KeyError:
        raise UnsupportedEntityError(entity_type)


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors()[:5]:
        location = ".".join(str(part) for part in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


def parse_record(entity_type: str, raw: Any) -> ShopifyRecord:
    """
    Validate one raw payload.

    Raises:
        RecordValidationError: Required field missing or a value failed to parse
    """
    schema = schema_for(entity_type)
    external_id = raw.get("id") if isinstance(raw, dict) else None
    try:
        return schema.model_validate(raw)
    except ValidationError as e:
        raise RecordValidationError(entity_type, external_id, _summarize(e)) from e


def parse_records(entity_type: str, raw_records: List[Any]) -> List[ShopifyRecord]:
    """Validate a whole page; the first invalid record fails the page"""
    return [parse_record(entity_type, raw) for raw in raw_records]
