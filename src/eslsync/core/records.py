"""
Source feed records.

Items arrive from the point-of-sale back office as a JSON array. Each item
carries descriptive attributes and one StoreScope per store it applies to.
Records are immutable once decoded.
"""

from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator


def _unit_price(amount: Optional[float], divisor: int) -> Optional[float]:
    if amount is None:
        return None
    return amount / divisor if divisor > 0 else amount


class StoreScope(BaseModel):
    """
    Store-level pricing and status data for one item.

    Divisors ("for-N" quantities, e.g. 2 for $6.00) default to 1 when
    missing or zero.
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    store_number: Optional[str] = Field(default=None, alias="storeNumber")
    store_name: Optional[str] = Field(default=None, alias="storeName")
    record_id: Optional[str] = Field(default=None, alias="recordId")

    removed: bool = Field(default=False, alias="deleted")
    discontinued: bool = False

    # Pricing
    price: Optional[float] = Field(default=None, alias="price1")
    divisor: int = Field(default=1, alias="divider1")
    promo_price: Optional[float] = Field(default=None, alias="promoPrice1")
    promo_divisor: int = Field(default=1, alias="promoDivider1")

    # Promo window (ISO-8601 date-times)
    promo_start: Optional[str] = Field(default=None, alias="promoStart")
    promo_end: Optional[str] = Field(default=None, alias="promoEnd")

    # Labels and scale data
    desc_line1: Optional[str] = Field(default=None, alias="descLine1")
    desc_line2: Optional[str] = Field(default=None, alias="descLine2")
    weight: Optional[float] = None
    unit_of_measure: Optional[str] = Field(default=None, alias="unitOfMeasure")
    fixed_weight_amt: Optional[float] = Field(default=None, alias="fixedWeightAmt")
    fixed_tare: Optional[float] = Field(default=None, alias="fixedTare")
    percent_tare: Optional[float] = Field(default=None, alias="percentTare")
    tare_type: Optional[str] = Field(default=None, alias="tareType")
    ingredients: Optional[str] = None
    shelf_life: Optional[int] = Field(default=None, alias="shelfLife")

    user_assigned1: Optional[str] = Field(default=None, alias="userAssigned1")
    user_assigned2: Optional[str] = Field(default=None, alias="userAssigned2")
    user_assigned3: Optional[str] = Field(default=None, alias="userAssigned3")
    user_assigned4: Optional[str] = Field(default=None, alias="userAssigned4")
    user_assigned5: Optional[str] = Field(default=None, alias="userAssigned5")
    user_assigned6: Optional[str] = Field(default=None, alias="userAssigned6")
    user_assigned7: Optional[str] = Field(default=None, alias="userAssigned7")

    local_power_field1: Optional[str] = Field(default=None, alias="localPowerField1")
    local_power_field2: Optional[str] = Field(default=None, alias="localPowerField2")
    local_power_field3: Optional[str] = Field(default=None, alias="localPowerField3")
    local_power_field4: Optional[str] = Field(default=None, alias="localPowerField4")
    local_power_field5: Optional[str] = Field(default=None, alias="localPowerField5")
    local_power_field6: Optional[str] = Field(default=None, alias="localPowerField6")
    local_power_field7: Optional[str] = Field(default=None, alias="localPowerField7")
    local_power_field8: Optional[str] = Field(default=None, alias="localPowerField8")

    @field_validator("removed", "discontinued", mode="before")
    @classmethod
    def _null_flag_is_false(cls, value):
        return False if value is None else value

    @field_validator("divisor", "promo_divisor", mode="before")
    @classmethod
    def _default_divisor(cls, value):
        if value is None or value == 0:
            return 1
        return value

    @property
    def should_delete(self) -> bool:
        """Items removed or discontinued at this store are deleted from the sink."""
        return self.removed or self.discontinued

    @property
    def unit_price(self) -> Optional[float]:
        """Regular price for a single unit (price / divisor)."""
        return _unit_price(self.price, self.divisor)

    @property
    def promo_unit_price(self) -> Optional[float]:
        """Promo price for a single unit (promo price / promo divisor)."""
        return _unit_price(self.promo_price, self.promo_divisor)


class SourceRecord(BaseModel):
    """
    One item from the source feed.

    Attributes:
        key: Stable item identifier (UPC/barcode)
        stores: Store scopes in feed order
    """

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        coerce_numbers_to_str=True,
    )

    key: Optional[str] = Field(default=None, alias="itemId")
    record_id: Optional[str] = Field(default=None, alias="recordId")
    name: Optional[str] = Field(default=None, alias="itemName")
    receipt_alias: Optional[str] = Field(default=None, alias="receiptAlias")
    brand: Optional[str] = None
    size: Optional[str] = None
    size_unit: Optional[str] = Field(default=None, alias="sizeUnit")
    size_qty: Optional[float] = Field(default=None, alias="sizeQty")

    dept_number: Optional[int] = Field(default=None, alias="deptNumber")
    dept_name: Optional[str] = Field(default=None, alias="deptName")
    sub_dept_number: Optional[int] = Field(default=None, alias="subDeptNumber")
    sub_dept_name: Optional[str] = Field(default=None, alias="subDeptName")

    power_field1: Optional[str] = Field(default=None, alias="powerField1")
    power_field2: Optional[str] = Field(default=None, alias="powerField2")
    power_field3: Optional[str] = Field(default=None, alias="powerField3")
    power_field4: Optional[str] = Field(default=None, alias="powerField4")
    power_field5: Optional[str] = Field(default=None, alias="powerField5")
    power_field6: Optional[str] = Field(default=None, alias="powerField6")
    power_field7: Optional[str] = Field(default=None, alias="powerField7")
    power_field8: Optional[str] = Field(default=None, alias="powerField8")

    stores: Tuple[StoreScope, ...] = ()

    @field_validator("stores", mode="before")
    @classmethod
    def _null_stores_is_empty(cls, value):
        return () if value is None else value

    def power_field(self, index: int) -> Optional[str]:
        """Get item extension slot 1-8."""
        return getattr(self, f"power_field{index}")


_RECORD_LIST = TypeAdapter(List[SourceRecord])


def decode_records(payload) -> List[SourceRecord]:
    """
    Decode a JSON payload (bytes, str or already-parsed list) into records.

    Raises:
        pydantic.ValidationError: If the payload is not an array of items
    """
    if isinstance(payload, (bytes, bytearray, str)):
        return _RECORD_LIST.validate_json(payload)
    return _RECORD_LIST.validate_python(payload)
