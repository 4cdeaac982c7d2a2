"""
Record Transformer - converts source items into sink items.

Handles price calculations and field mapping for one item at one store.
"""

from typing import Optional

import structlog

from eslsync.core.errors import EslSyncError, InvalidInputError, TransformError
from eslsync.core.item import DestinationRecord
from eslsync.core.records import SourceRecord, StoreScope

logger = structlog.get_logger(__name__)


def format_currency(amount: float) -> str:
    """Format an amount as US dollars (e.g. 12.98 -> "$12.98")."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_quantity_price(divisor: int, amount: Optional[float], unit_price: Optional[float]) -> Optional[str]:
    """
    Format a price for label display.

    "2/$6.00" when sold in multiples, otherwise the single unit price.
    """
    if divisor > 1 and amount is not None:
        return f"{divisor}/{format_currency(amount)}"
    if unit_price is None:
        return None
    return format_currency(unit_price)


def format_promo_date(value: Optional[str]) -> Optional[str]:
    """
    Convert an ISO date-time ("2025-12-01T10:35:16") to "12/01/2025".

    Values that do not split into three date parts are returned unchanged.
    """
    if not value:
        return None
    parts = value.split("T")[0].split("-")
    if len(parts) == 3:
        return f"{parts[1]}/{parts[2]}/{parts[0]}"
    logger.debug("promo_date_unparsed", value=value)
    return value


def format_department(number: Optional[int], name: Optional[str]) -> Optional[str]:
    """Format department as "01 Grocery"."""
    if number is None and name is None:
        return None
    if number is None:
        return name
    if name is None:
        return f"{number:02d}"
    return f"{number:02d} {name}"


class RecordTransformer:
    """
    Transforms a source item with store-specific data into a sink item.

    Stateless; one instance can be shared by concurrent requests.
    """

    def transform(self, record: Optional[SourceRecord], scope: Optional[StoreScope]) -> DestinationRecord:
        """
        Build the sink item for one store.

        Args:
            record: The source item
            scope: Pricing and status data for one store

        Returns:
            The transformed sink item

        Raises:
            InvalidInputError: If the item or scope is missing, or the item has no key
            TransformError: If a field could not be derived
        """
        if record is None or scope is None:
            raise InvalidInputError("Item and store data must not be null")
        if not record.key:
            raise InvalidInputError("Item has no itemId")

        logger.debug("transforming_item", item_id=record.key, store=scope.store_number)

        try:
            item = DestinationRecord(
                id=record.key,
                name=record.name,
                price=scope.unit_price,
                brand=record.brand,
                capacity=record.size,
            )
            self._add_pricing_fields(item, scope)
            self._add_item_info_fields(item, record, scope)
            self._add_promo_date_fields(item, scope)
            self._add_power_fields(item, record)
        except EslSyncError:
            raise
        except Exception as e:
            raise TransformError(
                f"Could not derive fields for {record.key} at store {scope.store_number}: {e}"
            ) from e

        return item

    def _add_pricing_fields(self, item: DestinationRecord, scope: StoreScope) -> None:
        unit_price = scope.unit_price
        promo_unit_price = scope.promo_unit_price

        # "2/$6" display quantity
        item.add_custom("priceQty", str(scope.divisor))

        regular_display = None
        if unit_price is not None:
            regular_display = format_quantity_price(scope.divisor, scope.price, unit_price)
            item.add_custom("formattedRegPrice", format_currency(unit_price))
            item.add_custom("formattedPrice", regular_display)

        promo_display = None
        if scope.promo_price is not None:
            promo_display = format_quantity_price(
                scope.promo_divisor, scope.promo_price, promo_unit_price
            )
            item.add_custom("promoPrice", promo_unit_price)
            item.add_custom("promoQty", str(scope.promo_divisor))
            item.add_custom("formattedPromoPrice", promo_display)

            if unit_price is not None and promo_unit_price is not None and unit_price > promo_unit_price:
                item.add_custom("saveAmt", "SAVE " + format_currency(unit_price - promo_unit_price))

        # Active price: promo when on promo, otherwise regular
        item.add_custom(
            "formattedRetailPrice",
            promo_display if scope.promo_price is not None else regular_display,
        )

    def _add_item_info_fields(self, item: DestinationRecord, record: SourceRecord, scope: StoreScope) -> None:
        item.add_custom("department", format_department(record.dept_number, record.dept_name))
        item.add_custom("subDepartment", record.sub_dept_name)
        item.add_custom("receiptAlias", record.receipt_alias)

        item.add_custom("Itemsize", record.size)
        item.add_custom("SizeUnit", record.size_unit)
        item.add_custom("sizeQty", record.size_qty)

        # Duplicated for label templates
        item.add_custom("barcodeUPC", record.key)
        item.add_custom("ItemName", record.name)
        item.add_custom("RealName", record.name)

        if scope.desc_line1:
            item.add_custom("descLine1", scope.desc_line1)
        if scope.desc_line2:
            item.add_custom("descLine2", scope.desc_line2)
        item.add_custom("weight", scope.weight)
        if scope.unit_of_measure:
            item.add_custom("unitOfMeasure", scope.unit_of_measure)

    def _add_promo_date_fields(self, item: DestinationRecord, scope: StoreScope) -> None:
        if scope.promo_start:
            item.add_custom("promoStartDate", format_promo_date(scope.promo_start))
        if scope.promo_end:
            item.add_custom("promoEndDate", "thru " + format_promo_date(scope.promo_end))

    def _add_power_fields(self, item: DestinationRecord, record: SourceRecord) -> None:
        """
        Map item extension slots.

        Slot 3 flags WIC eligibility, slot 4 carries loyalty program tags
        (both may apply), slot 5 is the warehouse item number.
        """
        pf3 = record.power_field(3)
        if pf3 is not None and "Y" in pf3.upper():
            item.add_custom("WIC", "WIC")

        pf4 = record.power_field(4)
        if pf4 is not None:
            pf4_upper = pf4.upper()
            if "DA BUX" in pf4_upper:
                item.add_custom("DABUX", "0002")
            if "HI-5" in pf4_upper:
                item.add_custom("IBMCode", "HI-5")

        item.add_custom("WHItem", record.power_field(5))

        for index in (1, 2, 6, 7, 8):
            item.add_custom(f"powerField{index}", record.power_field(index))


_default_transformer = RecordTransformer()


def transform(record: Optional[SourceRecord], scope: Optional[StoreScope]) -> DestinationRecord:
    """Transform one item for one store with the shared transformer."""
    return _default_transformer.transform(record, scope)
