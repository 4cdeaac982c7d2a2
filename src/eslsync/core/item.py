"""
Sink item model.

Represents one item in the shape the ESL sink accepts.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def format_custom_value(value: Any) -> str:
    """
    Render a value for the sink's custom map, which only accepts strings.

    Whole floats drop the decimal point (1.0 -> "1"); other floats keep
    their shortest repr (1.5 -> "1.5").
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


@dataclass
class DestinationRecord:
    """
    An item to be sent to the ESL sink.

    Attributes:
        id: Item key (UPC)
        name: Display name
        price: Unit price
        brand: Brand name
        capacity: Size text (e.g. "7 OZ")
        custom: Extension fields, insertion ordered, last write wins
    """

    id: str
    name: Optional[str] = None
    price: Optional[float] = None
    brand: Optional[str] = None
    capacity: Optional[str] = None
    custom: Dict[str, str] = field(default_factory=dict)

    def add_custom(self, name: str, value: Any) -> "DestinationRecord":
        """
        Set a custom field. None values are ignored.

        Args:
            name: Custom field name
            value: Value, converted to a string

        Returns:
            This record, for chaining
        """
        if value is not None:
            self.custom[name] = format_custom_value(value)
        return self

    def to_dict(self) -> dict:
        """Convert to the sink's JSON shape, omitting null fields."""
        data = {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "brand": self.brand,
            "capacity": self.capacity,
        }
        data = {k: v for k, v in data.items() if v is not None}
        data["custom"] = dict(self.custom)
        return data

    def __repr__(self) -> str:
        return f"DestinationRecord(id={self.id}, price={self.price}, custom={len(self.custom)} fields)"
