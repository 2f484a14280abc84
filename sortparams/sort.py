"""Immutable sort specification: directions, orders and multi-key sorts."""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Iterable, Iterator, Optional


class Direction(Enum):
    ASC = 'asc'
    DESC = 'desc'

    @property
    def is_ascending(self) -> bool:
        return self is Direction.ASC

    @property
    def is_descending(self) -> bool:
        return self is Direction.DESC

    @classmethod
    def from_string(cls, value: str) -> 'Direction':
        """Parse a direction name, ignoring case and surrounding whitespace."""
        try:
            return cls[(value or '').strip().upper()]
        except KeyError:
            raise ValueError(
                f"Invalid value {value!r} for sort direction; has to be either 'asc' or 'desc' (case insensitive)."
            ) from None

    @classmethod
    def from_optional_string(cls, value: Optional[str]) -> Optional['Direction']:
        if value is None:
            return None
        try:
            return cls.from_string(value)
        except ValueError:
            return None


DEFAULT_DIRECTION = Direction.ASC


@dataclass(frozen=True)
class Order:
    property: str
    direction: Direction = DEFAULT_DIRECTION
    ignore_case: bool = False

    def __post_init__(self):
        if not isinstance(self.property, str) or not self.property.strip():
            raise ValueError('Order property must not be empty.')
        if not isinstance(self.direction, Direction):
            object.__setattr__(self, 'direction', Direction.from_string(self.direction))

    @property
    def is_ascending(self) -> bool:
        return self.direction.is_ascending

    def with_direction(self, direction: Direction) -> 'Order':
        return replace(self, direction=direction)

    def with_property(self, property: str) -> 'Order':
        return replace(self, property=property)

    def ignoring_case(self) -> 'Order':
        return replace(self, ignore_case=True)

    def __str__(self):
        result = f'{self.property}: {self.direction.name}'
        if self.ignore_case:
            result += ', ignoring case'
        return result


class Sort:
    """An ordered sequence of :class:`Order` values.

    Order matters (primary key first) and the same property may appear
    more than once. Instances never change; combining two sorts with
    :meth:`and_` or ``+`` returns a new one.
    """

    __slots__ = ('_orders',)

    def __init__(self, orders: Iterable[Order] = ()):
        orders = tuple(orders)
        for order in orders:
            if not isinstance(order, Order):
                raise TypeError(f'Sort accepts Order instances only, got {type(order).__name__}.')
        object.__setattr__(self, '_orders', orders)

    def __setattr__(self, name, value):
        raise AttributeError('Sort is immutable')

    @classmethod
    def by(cls, *properties: str, direction: Direction = DEFAULT_DIRECTION) -> 'Sort':
        return cls(Order(prop, direction) for prop in properties)

    @classmethod
    def unsorted(cls) -> 'Sort':
        return cls()

    @property
    def orders(self) -> tuple[Order, ...]:
        return self._orders

    @property
    def is_sorted(self) -> bool:
        return bool(self._orders)

    def and_(self, other: Optional['Sort']) -> 'Sort':
        if other is None:
            return self
        return Sort(self._orders + tuple(other))

    def __add__(self, other):
        if other is not None and not isinstance(other, Sort):
            return NotImplemented
        return self.and_(other)

    def get_order_for(self, property: str) -> Optional[Order]:
        for order in self._orders:
            if order.property == property:
                return order
        return None

    def ascending(self) -> 'Sort':
        return Sort(order.with_direction(Direction.ASC) for order in self._orders)

    def descending(self) -> 'Sort':
        return Sort(order.with_direction(Direction.DESC) for order in self._orders)

    def __iter__(self) -> Iterator[Order]:
        return iter(self._orders)

    def __len__(self) -> int:
        return len(self._orders)

    def __bool__(self) -> bool:
        return bool(self._orders)

    def __eq__(self, other):
        if not isinstance(other, Sort):
            return NotImplemented
        return self._orders == other._orders

    def __hash__(self):
        return hash(self._orders)

    def __str__(self):
        if not self._orders:
            return 'UNSORTED'
        return ','.join(str(order) for order in self._orders)

    def __repr__(self):
        return f'<Sort {self}>'
