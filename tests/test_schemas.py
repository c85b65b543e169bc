"""
Tests for Shopify payload validation.

Covers required ids, defaults for missing fields, money parsing and
timestamp normalisation. No database needed.
"""
from datetime import datetime
from decimal import Decimal

import pytest

from storesync.exceptions import RecordValidationError, UnsupportedEntityError
from storesync.schemas.shopify import (
    CustomerRecord,
    OrderRecord,
    ProductRecord,
    parse_record,
    parse_records,
    schema_for,
)

from factories import customer_payload, order_payload, product_payload


class TestCustomerRecord:
    """Customer payload parsing"""

    def test_full_payload(self):
        record = parse_record("customers", customer_payload(7))
        assert isinstance(record, CustomerRecord)
        assert record.id == 7
        assert record.total_spent == Decimal("120.50")
        assert record.orders_count == 2

    def test_missing_amount_defaults_to_zero(self):
        record = parse_record("customers", {"id": 1, "total_spent": None, "orders_count": None})
        assert record.total_spent == Decimal("0.00")
        assert record.orders_count == 0

    def test_missing_id_is_rejected(self):
        with pytest.raises(RecordValidationError) as exc_info:
            parse_record("customers", {"email": "a@example.com"})
        assert exc_info.value.entity_type == "customers"

    def test_unknown_keys_are_ignored(self):
        record = parse_record("customers", {"id": 1, "accepts_marketing": True})
        assert not hasattr(record, "accepts_marketing")


class TestMoneyParsing:
    """Amounts must be real decimals, never silently zero"""

    def test_rounds_to_cents(self):
        record = parse_record("orders", order_payload(1, total_price="10.005"))
        assert record.total_price == Decimal("10.01")

    def test_numeric_input_accepted(self):
        record = parse_record("orders", order_payload(1, total_price=12))
        assert record.total_price == Decimal("12.00")

    def test_blank_amount_is_none(self):
        record = parse_record("orders", order_payload(1, total_tax=""))
        assert record.total_tax is None

    @pytest.mark.parametrize("bad", ["abc", "NaN", "Infinity", True])
    def test_unparseable_amount_fails_record(self, bad):
        with pytest.raises(RecordValidationError) as exc_info:
            parse_record("orders", order_payload(42, total_price=bad))
        assert exc_info.value.external_id == 42
        assert "total_price" in exc_info.value.detail

    @pytest.mark.parametrize("huge", ["1e40", "100000000", "-100000000.00"])
    def test_amount_beyond_column_precision_fails_record(self, huge):
        with pytest.raises(RecordValidationError) as exc_info:
            parse_record("orders", order_payload(42, total_price=huge))
        assert "total_price" in exc_info.value.detail

    def test_largest_storable_amount_accepted(self):
        record = parse_record("orders", order_payload(1, total_price="99999999.99"))
        assert record.total_price == Decimal("99999999.99")

    def test_variant_weight_has_narrower_range(self):
        with pytest.raises(RecordValidationError):
            parse_record("products", {"id": 5, "variants": [{"id": 51, "weight": "1000000"}]})


class TestTimestamps:
    """Source timestamps are stored as naive UTC"""

    def test_offset_converted_to_utc(self):
        record = parse_record("customers", customer_payload(1, updated_at="2024-01-01T10:00:00-05:00"))
        assert record.updated_at == datetime(2024, 1, 1, 15, 0, 0)
        assert record.updated_at.tzinfo is None

    def test_source_updated_at_falls_back_to_created_at(self):
        record = parse_record("customers", {"id": 1, "created_at": "2024-02-01T00:00:00Z", "updated_at": None})
        assert record.source_updated_at == datetime(2024, 2, 1)

    def test_blank_timestamp_is_none(self):
        record = parse_record("customers", {"id": 1, "updated_at": ""})
        assert record.updated_at is None


class TestProductAndOrder:
    """Nested records"""

    def test_product_variants(self):
        record = parse_record("products", product_payload(5, variant_ids=[51, 52]))
        assert isinstance(record, ProductRecord)
        assert [v.id for v in record.variants] == [51, 52]
        assert record.variants[0].price == Decimal("19.99")

    def test_product_tag_list_joined(self):
        record = parse_record("products", product_payload(5, tags=["a", "b"]))
        assert record.tags == "a, b"

    def test_null_variants_treated_as_empty(self):
        record = parse_record("products", {"id": 5, "variants": None})
        assert record.variants == []

    def test_order_customer_and_number(self):
        record = parse_record("orders", order_payload(9, customer_id=77))
        assert isinstance(record, OrderRecord)
        assert record.customer.id == 77
        assert record.order_number == "1009"

    def test_order_without_customer(self):
        record = parse_record("orders", order_payload(9))
        assert record.customer is None

    def test_line_item_defaults(self):
        record = parse_record("orders", order_payload(9, line_items=[{"id": 1, "quantity": None}]))
        assert record.line_items[0].quantity == 1
        assert record.line_items[0].product_id is None


class TestEntityLookup:

    def test_unknown_entity(self):
        with pytest.raises(UnsupportedEntityError):
            schema_for("refunds")

    def test_first_invalid_record_fails_page(self):
        with pytest.raises(RecordValidationError):
            parse_records("customers", [customer_payload(1), {"email": "no-id"}])
