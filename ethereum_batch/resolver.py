"""
Per-item parameter resolution.

A value is either fixed once for the whole batch (``parameter``) or read from a
named field of the item's own record (``input``).
"""
import json
import logging
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from .exceptions import ConfigurationError, MissingFieldError

logger = logging.getLogger(__name__)


class ValueSource(str, Enum):
    """Where a per-item value comes from."""
    PARAMETER = "parameter"
    INPUT = "input"


def to_text(value: Any) -> str:
    """
    Coerce a resolved value to text.

    Strings pass through, other scalars use their canonical form and
    objects/arrays are serialized to compact JSON.
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, separators=(",", ":"), default=str)
    return str(value)


class ValueResolver:
    """
    Resolves logical fields for items of one batch.

    Args:
        records: The batch's input records, read-only
        operation: Operation name used in error messages
    """

    def __init__(self, records: Sequence[Mapping[str, Any]], operation: Optional[str] = None):
        self.records = records
        self.operation = operation

    def record(self, item_index: int) -> Mapping[str, Any]:
        if 0 <= item_index < len(self.records):
            return self.records[item_index]
        return {}

    def resolve(
        self,
        item_index: int,
        source: ValueSource,
        static_value: Any,
        field_name: Optional[str],
        required: bool = True,
        label: Optional[str] = None,
    ) -> Any:
        """
        Resolve one value for one item.

        Args:
            item_index: 0-based item index
            source: ``parameter`` or ``input``
            static_value: Value used when source is ``parameter``
            field_name: Record field used when source is ``input``
            required: Reject null and blank values
            label: Human name for the value in error messages

        Returns:
            The resolved value, unchanged

        Raises:
            MissingFieldError: If a required value is absent, null or blank
            ConfigurationError: If source is ``input`` without a field name
        """
        source = ValueSource(source)
        if source is ValueSource.PARAMETER:
            value = static_value
            name = label or "parameter"
        else:
            if not field_name:
                raise ConfigurationError(
                    f"A field name is required to read {label or 'a value'} from input data",
                    operation=self.operation,
                    item_index=item_index,
                )
            value = self.record(item_index).get(field_name)
            name = field_name

        if value is None:
            raise MissingFieldError(
                self._missing_message(source, name, label),
                operation=self.operation,
                item_index=item_index,
                field=name,
            )
        if required and isinstance(value, str) and not value.strip():
            raise MissingFieldError(
                self._missing_message(source, name, label),
                operation=self.operation,
                item_index=item_index,
                field=name,
            )
        return value

    def resolve_text(self, item_index: int, source: ValueSource, static_value: Any,
                     field_name: Optional[str], required: bool = True,
                     label: Optional[str] = None) -> str:
        value = self.resolve(item_index, source, static_value, field_name, required, label)
        return to_text(value)

    @staticmethod
    def _missing_message(source: ValueSource, name: str, label: Optional[str]) -> str:
        if source is ValueSource.INPUT:
            suffix = f" ({label})" if label else ""
            return f'missing field "{name}"{suffix}'
        return f"{label or name} is required"
