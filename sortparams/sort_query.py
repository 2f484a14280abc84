import argparse
import logging
import sys
from urllib.parse import parse_qsl

from werkzeug.datastructures import MultiDict

from sortparams.config import Config
from sortparams.sort import Direction, Order, Sort
from sortparams.sort_utils import SortHandlerArgumentResolver


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _build_resolver() -> SortHandlerArgumentResolver:
    return SortHandlerArgumentResolver.from_config(
        {key: getattr(Config, key) for key in dir(Config) if key.startswith("SORT_")}
    )


def _parse_order(raw: str) -> Order:
    prop, _, direction = raw.partition(":")
    if not direction:
        return Order(prop)
    return Order(prop, Direction.from_string(direction))


def _decode(resolver: SortHandlerArgumentResolver, query_string: str, qualifier: str | None) -> int:
    args = MultiDict(parse_qsl(query_string.lstrip("?"), keep_blank_values=True))
    sort = resolver.resolve(args, qualifier=qualifier)
    if sort is None:
        print(f"No {resolver.sort_parameter(qualifier)} parameter found.")
        return 0
    for order in sort:
        suffix = " ignorecase" if order.ignore_case else ""
        print(f"{order.property} {order.direction.value}{suffix}")
    return 0


def _encode(resolver: SortHandlerArgumentResolver, raw_orders: list[str], qualifier: str | None) -> int:
    try:
        sort = Sort(_parse_order(raw) for raw in raw_orders)
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    print(resolver.build_url("", sort, qualifier).lstrip("?"))
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Decode or encode sort query parameters.")
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument(
        "--decode",
        metavar="QUERY",
        help="Query string to read sort parameters from, e.g. 'sort=lastname,desc'.",
    )
    action.add_argument(
        "--encode",
        metavar="ORDER",
        nargs="+",
        help="Orders to encode as property[:direction], e.g. lastname:desc firstname.",
    )
    parser.add_argument(
        "--qualifier",
        default=None,
        help="Read or write <qualifier>_sort instead of sort.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log skipped sort input.")
    args = parser.parse_args()

    _configure_logging(args.verbose)
    try:
        resolver = _build_resolver()
    except ValueError as exc:
        print(f"ERROR: invalid sort configuration: {exc}", file=sys.stderr)
        sys.exit(2)

    if args.decode is not None:
        sys.exit(_decode(resolver, args.decode, args.qualifier))
    sys.exit(_encode(resolver, args.encode, args.qualifier))


if __name__ == "__main__":
    main()
