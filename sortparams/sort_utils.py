"""Helpers for reading, writing and applying sort query parameters.

A sort travels on the query string as one or more ``sort`` values, each a
comma-joined list of properties optionally followed by a direction::

    ?sort=lastname,firstname,desc&sort=created_at

Parsing is permissive: blank tokens are skipped, a missing or unknown
direction falls back to the default and a missing parameter resolves to
``None``. Nothing here raises because of what a client sent.
"""

import logging
from typing import Iterable, Mapping, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from flask import current_app, request, url_for
from sqlalchemy import String, asc, desc, func
from sqlalchemy import inspect as sa_inspect
from werkzeug.datastructures import MultiDict

from sortparams.sort import DEFAULT_DIRECTION, Direction, Order, Sort

logger = logging.getLogger(__name__)

DEFAULT_PARAMETER = 'sort'
DEFAULT_PROPERTY_DELIMITER = ','
DEFAULT_QUALIFIER_DELIMITER = '_'
IGNORE_CASE_TOKEN = 'ignorecase'
EXTENSION_KEY = 'sort_resolver'


def decode_sort(
    values: Iterable[Optional[str]],
    property_delimiter: str = DEFAULT_PROPERTY_DELIMITER,
    default_direction: Direction = DEFAULT_DIRECTION,
) -> Optional[Sort]:
    orders: list[Order] = []

    for value in values:
        if not value or not value.strip():
            continue

        elements = [element.strip() for element in value.split(property_delimiter)]

        ignore_case = False
        if elements and elements[-1].lower() == IGNORE_CASE_TOKEN:
            ignore_case = True
            elements = elements[:-1]

        direction = Direction.from_optional_string(elements[-1]) if elements else None
        if direction is None:
            direction = default_direction
            properties = elements
        else:
            properties = elements[:-1]

        for prop in properties:
            if not prop:
                continue
            orders.append(Order(prop, direction, ignore_case))

        if not any(properties):
            logger.debug('Sort value %r carries no properties; ignoring it.', value)

    if not orders:
        return None
    return Sort(orders)


def encode_sort(
    sort: Optional[Sort],
    property_delimiter: str = DEFAULT_PROPERTY_DELIMITER,
) -> list[str]:
    """Fold consecutive orders sharing a direction into query values."""
    if not sort:
        return []

    expressions: list[str] = []
    group: list[str] = []
    group_key = None

    def close_group():
        direction, ignore_case = group_key
        tokens = group + [direction.value]
        if ignore_case:
            tokens.append(IGNORE_CASE_TOKEN)
        expressions.append(property_delimiter.join(tokens))

    for order in sort:
        key = (order.direction, order.ignore_case)
        if group and key != group_key:
            close_group()
            group = []
        group_key = key
        group.append(order.property)

    if group:
        close_group()

    return expressions


class SortHandlerArgumentResolver:
    """Resolves a :class:`Sort` from request arguments and writes it back."""

    def __init__(
        self,
        parameter_name: str = DEFAULT_PARAMETER,
        property_delimiter: str = DEFAULT_PROPERTY_DELIMITER,
        qualifier_delimiter: str = DEFAULT_QUALIFIER_DELIMITER,
        default_direction: Direction = DEFAULT_DIRECTION,
        fallback_sort: Optional[Sort] = None,
    ):
        if not parameter_name:
            raise ValueError('parameter_name must not be empty.')
        if not property_delimiter:
            raise ValueError('property_delimiter must not be empty.')
        if qualifier_delimiter == property_delimiter:
            raise ValueError('qualifier_delimiter must differ from property_delimiter.')
        self.parameter_name = parameter_name
        self.property_delimiter = property_delimiter
        self.qualifier_delimiter = qualifier_delimiter or ''
        self.default_direction = default_direction
        self.fallback_sort = fallback_sort

    @classmethod
    def from_config(cls, config: Mapping) -> 'SortHandlerArgumentResolver':
        return cls(
            parameter_name=config.get('SORT_PARAMETER', DEFAULT_PARAMETER),
            property_delimiter=config.get('SORT_PROPERTY_DELIMITER', DEFAULT_PROPERTY_DELIMITER),
            qualifier_delimiter=config.get('SORT_QUALIFIER_DELIMITER', DEFAULT_QUALIFIER_DELIMITER),
            default_direction=Direction.from_string(
                config.get('SORT_DEFAULT_DIRECTION', DEFAULT_DIRECTION.value)
            ),
        )

    def sort_parameter(self, qualifier: Optional[str] = None) -> str:
        if qualifier and qualifier.strip():
            return f'{qualifier.strip()}{self.qualifier_delimiter}{self.parameter_name}'
        return self.parameter_name

    def resolve(
        self,
        args: Mapping,
        qualifier: Optional[str] = None,
        default: Optional[Sort] = None,
    ) -> Optional[Sort]:
        name = self.sort_parameter(qualifier)
        values = _get_values(args, name)
        sort = decode_sort(values, self.property_delimiter, self.default_direction)
        if sort is None:
            return default if default is not None else self.fallback_sort
        logger.debug('Resolved %s=%s', name, sort)
        return sort

    def expressions(self, sort: Optional[Sort]) -> list[str]:
        return encode_sort(sort, self.property_delimiter)

    def enhance(
        self,
        query: MultiDict,
        sort: Optional[Sort],
        qualifier: Optional[str] = None,
    ) -> MultiDict:
        """Append one entry per direction group of ``sort`` to ``query``."""
        name = self.sort_parameter(qualifier)
        for expression in self.expressions(sort):
            query.add(name, expression)
        return query

    def build_url(self, url: str, sort: Optional[Sort], qualifier: Optional[str] = None) -> str:
        """Return ``url`` with its sort parameter replaced by ``sort``."""
        name = self.sort_parameter(qualifier)
        parts = urlsplit(url)
        query = MultiDict(
            (key, value)
            for key, value in parse_qsl(parts.query, keep_blank_values=True)
            if key != name
        )
        self.enhance(query, sort, qualifier)
        encoded = urlencode(list(query.items(multi=True)), safe=self.property_delimiter)
        return urlunsplit((parts.scheme, parts.netloc, parts.path, encoded, parts.fragment))


def _get_values(args: Mapping, name: str) -> list[Optional[str]]:
    if hasattr(args, 'getlist'):
        return args.getlist(name)
    value = args.get(name)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def init_sort_resolver(app) -> SortHandlerArgumentResolver:
    resolver = SortHandlerArgumentResolver.from_config(app.config)
    app.extensions[EXTENSION_KEY] = resolver
    return resolver


def get_sort_resolver() -> SortHandlerArgumentResolver:
    resolver = current_app.extensions.get(EXTENSION_KEY)
    if resolver is None:
        resolver = init_sort_resolver(current_app)
    return resolver


def resolve_request_sort(qualifier: Optional[str] = None, default: Optional[Sort] = None) -> Optional[Sort]:
    return get_sort_resolver().resolve(request.args, qualifier=qualifier, default=default)


def sort_url_for(endpoint: str, sort: Optional[Sort], qualifier: Optional[str] = None, **values) -> str:
    return get_sort_resolver().build_url(url_for(endpoint, **values), sort, qualifier)


def normalize_sort(
    sort: Optional[Sort],
    allowed_keys: Iterable[str],
    default: Sort,
) -> Sort:
    allowed = set(allowed_keys)
    if not sort:
        return default

    kept = Sort(order for order in sort if order.property in allowed)
    if len(kept) != len(sort):
        logger.debug(
            'Dropped sort properties not in %s: %s',
            sorted(allowed),
            ', '.join(order.property for order in sort if order.property not in allowed),
        )
    return kept or default


def apply_sort(query, model, sort: Optional[Sort], allowed_keys: Optional[Iterable[str]] = None):
    """Add ``ORDER BY`` clauses for ``sort`` to a SQLAlchemy query."""
    if not sort:
        return query

    mapper = sa_inspect(model)
    columns = {attr.key for attr in mapper.column_attrs}
    allowed = set(allowed_keys) if allowed_keys is not None else None
    clauses = []

    for order in sort:
        if allowed is not None and order.property not in allowed:
            logger.debug('Skipping sort on %s: not an allowed key', order.property)
            continue
        if order.property not in columns:
            logger.debug('Skipping sort on %s: no such column on %s', order.property, model.__name__)
            continue

        expr = getattr(model, order.property)
        if order.ignore_case and isinstance(mapper.columns[order.property].type, String):
            expr = func.lower(expr)
        clauses.append(asc(expr) if order.is_ascending else desc(expr))

    if not clauses:
        return query
    return query.order_by(*clauses)
