"""
Host-facing interface of the engine.

The host supplies resolved parameters by name, the batch's input records and
the wallet credential; ``StaticNodeContext`` is a dict-backed implementation.
"""
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence


class NodeContext(Protocol):
    """What the engine needs from its host"""

    def get_parameter(self, name: str, item_index: int = 0, default: Any = None) -> Any:
        """Resolved configuration value, optionally per item"""
        ...

    def get_input_data(self) -> Sequence[Mapping[str, Any]]:
        """Input records of the current batch"""
        ...

    def get_credentials(self) -> Optional[Mapping[str, Any]]:
        """Secret-holding credential mapping, or None"""
        ...


class StaticNodeContext:
    """
    Context backed by plain dictionaries.

    Args:
        parameters: Parameter values, identical for every item
        items: Input records
        credentials: Credential mapping such as ``{"privateKey": "0x..."}``
    """

    def __init__(
        self,
        parameters: Optional[Mapping[str, Any]] = None,
        items: Optional[Sequence[Mapping[str, Any]]] = None,
        credentials: Optional[Mapping[str, Any]] = None,
    ):
        self.parameters: Dict[str, Any] = dict(parameters or {})
        self.items: List[Mapping[str, Any]] = list(items or [])
        self.credentials = credentials

    def get_parameter(self, name: str, item_index: int = 0, default: Any = None) -> Any:
        value = self.parameters.get(name)
        return default if value is None else value

    def get_input_data(self) -> Sequence[Mapping[str, Any]]:
        return self.items

    def get_credentials(self) -> Optional[Mapping[str, Any]]:
        return self.credentials
