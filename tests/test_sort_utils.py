import unittest

from werkzeug.datastructures import MultiDict

from sortparams.sort import Direction, Order, Sort
from sortparams.sort_utils import (
    SortHandlerArgumentResolver,
    decode_sort,
    encode_sort,
    normalize_sort,
)

SORT_0 = "username"
SORT_1 = "username,asc"
SORT_2 = ["username,ASC", "lastname,firstname,DESC"]
SORT_3 = "firstname,lastname"


def _request_args_for(sort: Sort, qualifier: str | None = None) -> MultiDict:
    prefix = f"{qualifier}_" if qualifier else ""
    return MultiDict(
        (f"{prefix}sort", f"{order.property},{order.direction.name}") for order in sort
    )


class TestDecodeSort(unittest.TestCase):
    def test_single_property_without_direction(self) -> None:
        self.assertEqual(decode_sort([SORT_0]), Sort.by("username"))

    def test_single_property_with_direction(self) -> None:
        self.assertEqual(decode_sort([SORT_1]), Sort.by("username"))

    def test_multiple_values_keep_request_order(self) -> None:
        self.assertEqual(
            decode_sort(SORT_2),
            Sort.by("username").and_(Sort.by("lastname", "firstname", direction=Direction.DESC)),
        )

    def test_all_tokens_are_properties_without_direction(self) -> None:
        self.assertEqual(decode_sort([SORT_3]), Sort.by("firstname", "lastname"))

    def test_unknown_direction_is_treated_as_property(self) -> None:
        self.assertEqual(decode_sort(["name,sideways"]), Sort.by("name", "sideways"))

    def test_missing_or_empty_values_yield_none(self) -> None:
        self.assertIsNone(decode_sort([]))
        self.assertIsNone(decode_sort([None]))
        self.assertIsNone(decode_sort(["", "  "]))

    def test_direction_only_yields_none(self) -> None:
        self.assertIsNone(decode_sort(["desc"]))
        self.assertIsNone(decode_sort([",,desc"]))

    def test_blank_tokens_are_skipped(self) -> None:
        self.assertEqual(
            decode_sort([" lastname , , desc "]),
            Sort([Order("lastname", Direction.DESC)]),
        )

    def test_ignore_case_marker(self) -> None:
        self.assertEqual(
            decode_sort(["lastname,Desc,IgnoreCase"]),
            Sort([Order("lastname", Direction.DESC, ignore_case=True)]),
        )

    def test_configured_default_direction(self) -> None:
        self.assertEqual(
            decode_sort(["lastname"], default_direction=Direction.DESC),
            Sort([Order("lastname", Direction.DESC)]),
        )

    def test_custom_property_delimiter(self) -> None:
        self.assertEqual(
            decode_sort(["lastname;firstname;desc"], property_delimiter=";"),
            Sort.by("lastname", "firstname", direction=Direction.DESC),
        )


class TestEncodeSort(unittest.TestCase):
    def test_folds_same_direction_into_one_value(self) -> None:
        sort = Sort.by("firstname", "lastname", direction=Direction.DESC)

        self.assertEqual(encode_sort(sort), ["firstname,lastname,desc"])

    def test_mixed_directions_keep_input_order(self) -> None:
        sort = Sort.by("foo").and_(Sort.by("bar", direction=Direction.DESC)).and_(Sort.by("foobar"))

        self.assertEqual(encode_sort(sort), ["foo,asc", "bar,desc", "foobar,asc"])

    def test_consecutive_same_direction_grouped(self) -> None:
        sort = Sort.by("foo", "bar").and_(Sort.by("foobar", direction=Direction.DESC))

        self.assertEqual(encode_sort(sort), ["foo,bar,asc", "foobar,desc"])

    def test_ignore_case_starts_new_group(self) -> None:
        sort = Sort([Order("a"), Order("b", ignore_case=True), Order("c", ignore_case=True)])

        self.assertEqual(encode_sort(sort), ["a,asc", "b,c,asc,ignorecase"])

    def test_empty_sort_encodes_nothing(self) -> None:
        self.assertEqual(encode_sort(None), [])
        self.assertEqual(encode_sort(Sort.unsorted()), [])


class TestSortHandlerArgumentResolver(unittest.TestCase):
    def setUp(self) -> None:
        self.resolver = SortHandlerArgumentResolver()

    def test_discovers_simple_sort_from_request(self) -> None:
        reference = Sort.by("bar", "foo")

        self.assertEqual(self.resolver.resolve(_request_args_for(reference)), reference)

    def test_discovers_complex_sort_from_request(self) -> None:
        reference = Sort.by("bar", "foo").and_(Sort.by("fizz", "buzz"))

        self.assertEqual(self.resolver.resolve(_request_args_for(reference)), reference)

    def test_discovers_qualified_sort_from_request(self) -> None:
        reference = Sort.by("bar", "foo")

        self.assertEqual(
            self.resolver.resolve(_request_args_for(reference, "qual"), qualifier="qual"),
            reference,
        )

    def test_qualifier_isolates_parameters(self) -> None:
        args = MultiDict([("sort", "foo,desc"), ("qual_sort", "bar,asc")])

        self.assertEqual(self.resolver.resolve(args, qualifier="qual"), Sort.by("bar"))
        self.assertEqual(self.resolver.resolve(args), Sort([Order("foo", Direction.DESC)]))
        self.assertIsNone(self.resolver.resolve(args, qualifier="other"))

    def test_returns_none_for_sort_parameter_set_to_nothing(self) -> None:
        self.assertIsNone(self.resolver.resolve(MultiDict([("sort", "")])))
        self.assertIsNone(self.resolver.resolve(MultiDict()))

    def test_fallback_and_default_apply_when_missing(self) -> None:
        resolver = SortHandlerArgumentResolver(fallback_sort=Sort.by("id"))

        self.assertEqual(resolver.resolve(MultiDict()), Sort.by("id"))
        self.assertEqual(resolver.resolve(MultiDict(), default=Sort.by("name")), Sort.by("name"))
        self.assertEqual(resolver.resolve(MultiDict([("sort", "age")])), Sort.by("age"))

    def test_reads_plain_mappings(self) -> None:
        self.assertEqual(
            self.resolver.resolve({"sort": ["a,desc", "b"]}),
            Sort([Order("a", Direction.DESC), Order("b")]),
        )
        self.assertEqual(self.resolver.resolve({"sort": "a"}), Sort.by("a"))
        self.assertIsNone(self.resolver.resolve({}))

    def test_sort_parameter_names(self) -> None:
        self.assertEqual(self.resolver.sort_parameter(), "sort")
        self.assertEqual(self.resolver.sort_parameter(""), "sort")
        self.assertEqual(self.resolver.sort_parameter("qual"), "qual_sort")

    def test_builds_up_request_parameters(self) -> None:
        cases = [
            (Sort.by("firstname", "lastname", direction=Direction.DESC), "sort=firstname,lastname,desc"),
            (
                Sort.by("foo").and_(Sort.by("bar", direction=Direction.DESC).and_(Sort.by("foobar"))),
                "sort=foo,asc&sort=bar,desc&sort=foobar,asc",
            ),
            (
                Sort.by("foo").and_(Sort.by("bar").and_(Sort.by("foobar", direction=Direction.DESC))),
                "sort=foo,bar,asc&sort=foobar,desc",
            ),
        ]
        for sort, expected in cases:
            with self.subTest(expected=expected):
                self.assertTrue(self.resolver.build_url("/", sort).endswith(expected))

    def test_enhance_appends_entries(self) -> None:
        query = MultiDict([("page", "2"), ("sort", "kept")])

        self.resolver.enhance(query, Sort.by("foo", direction=Direction.DESC), qualifier="qual")

        self.assertEqual(query.getlist("sort"), ["kept"])
        self.assertEqual(query.getlist("qual_sort"), ["foo,desc"])
        self.assertEqual(query.get("page"), "2")

    def test_build_url_replaces_existing_sort_only(self) -> None:
        url = self.resolver.build_url(
            "/people?page=2&sort=old,asc&members_sort=x",
            Sort.by("a"),
        )

        self.assertEqual(url, "/people?page=2&members_sort=x&sort=a,asc")

    def test_build_url_with_empty_sort_drops_parameter(self) -> None:
        self.assertEqual(self.resolver.build_url("/people?sort=old", None), "/people")

    def test_round_trip(self) -> None:
        sorts = [
            Sort.by("username"),
            Sort.by("lastname", "firstname", direction=Direction.DESC),
            Sort.by("foo").and_(Sort.by("bar", direction=Direction.DESC)).and_(Sort.by("foobar")),
            Sort([Order("name", Direction.DESC, ignore_case=True), Order("id")]),
        ]
        for sort in sorts:
            with self.subTest(sort=str(sort)):
                query = self.resolver.enhance(MultiDict(), sort, qualifier="q")
                self.assertEqual(self.resolver.resolve(query, qualifier="q"), sort)

    def test_from_config(self) -> None:
        resolver = SortHandlerArgumentResolver.from_config(
            {
                "SORT_PARAMETER": "order",
                "SORT_QUALIFIER_DELIMITER": "-",
                "SORT_DEFAULT_DIRECTION": "DESC",
            }
        )

        self.assertEqual(resolver.sort_parameter("qual"), "qual-order")
        self.assertEqual(
            resolver.resolve(MultiDict([("qual-order", "name")]), qualifier="qual"),
            Sort([Order("name", Direction.DESC)]),
        )

    def test_rejects_empty_parameter_name(self) -> None:
        with self.assertRaises(ValueError):
            SortHandlerArgumentResolver(parameter_name="")

    def test_rejects_clashing_delimiters(self) -> None:
        with self.assertRaises(ValueError):
            SortHandlerArgumentResolver(qualifier_delimiter=",")

    def test_reencoding_decoded_values_reproduces_them(self) -> None:
        decoded = self.resolver.resolve(MultiDict(("sort", value) for value in SORT_2))
        query = self.resolver.enhance(MultiDict(), decoded)

        self.assertEqual(query.getlist("sort"), ["username,asc", "lastname,firstname,desc"])
        self.assertEqual(encode_sort(decode_sort(SORT_2)), ["username,asc", "lastname,firstname,desc"])


class TestNormalizeSort(unittest.TestCase):
    def test_defaults_when_missing(self) -> None:
        default = Sort.by("created_at", direction=Direction.DESC)

        self.assertEqual(
            normalize_sort(None, allowed_keys={"name", "created_at"}, default=default),
            default,
        )

    def test_drops_unknown_keys(self) -> None:
        sort = Sort.by("bogus").and_(Sort.by("name", direction=Direction.DESC))

        self.assertEqual(
            normalize_sort(sort, allowed_keys={"name"}, default=Sort.by("created_at")),
            Sort([Order("name", Direction.DESC)]),
        )

    def test_all_unknown_keys_fall_back(self) -> None:
        self.assertEqual(
            normalize_sort(Sort.by("bogus"), allowed_keys={"name"}, default=Sort.by("name")),
            Sort.by("name"),
        )


if __name__ == "__main__":
    unittest.main()
