import io
import unittest

from rich.console import Console

from crudforge.core import logging as forge_logging
from crudforge.core.config import QueryProfile
from crudforge.core.errors import ParseError
from crudforge.core.query import Filter, Order, Page, Range, parse_bracket, parse_query, parse_simple
from crudforge.core.query.parser import to_multimap


class MultiMapTests(unittest.TestCase):
    def test_pairs_and_dicts_are_accepted(self):
        self.assertEqual(to_multimap([("order", "a"), ("order", "b")]), {"order": ["a", "b"]})
        self.assertEqual(to_multimap({"page": "2", "order": ["a", "b"]}), {"page": ["2"], "order": ["a", "b"]})


class SimpleProfileTests(unittest.TestCase):
    def test_defaults(self):
        cond = parse_simple({})
        self.assertEqual(cond.orders, (Order(None, False),))
        self.assertEqual(cond.pagination, Range(0, 25))
        self.assertEqual(cond.preloads, ())
        self.assertEqual(len(cond.filters), 0)

    def test_sort_pairs(self):
        cond = parse_simple({"sort": '["name","desc"]'})
        self.assertEqual(cond.orders, (Order("name", True),))
        cond = parse_simple({"sort": '["name","ASC","size","DESC"]'})
        self.assertEqual(cond.orders, (Order("name", False), Order("size", True)))

    def test_sort_of_odd_length_is_rejected(self):
        with self.assertRaises(ParseError) as ctx:
            parse_simple({"sort": '["name","desc","size"]'})
        self.assertIn("pairs", str(ctx.exception))

    def test_sort_must_be_json(self):
        with self.assertRaises(ParseError):
            parse_simple({"sort": "name"})

    def test_range_forms(self):
        self.assertEqual(parse_simple({"range": "[0, 24]"}).pagination, Range(0, 24))
        self.assertEqual(parse_simple({"range": "[5-9]"}).pagination, Range(5, 9))
        self.assertEqual(parse_simple({"range": "[5,9]"}).pagination, Range(5, 9))

    def test_malformed_range_falls_back_to_default(self):
        self.assertEqual(parse_simple({"range": "[a,b]"}).pagination, Range(0, 25))
        self.assertEqual(parse_simple({"range": "0-9"}).pagination, Range(0, 25))

    def test_range_overflow_is_an_error(self):
        with self.assertRaises(ParseError):
            parse_simple({"range": "[0, 99999999999]"})

    def test_embed(self):
        self.assertEqual(parse_simple({"embed": '["tags","owner"]'}).preloads, ("tags", "owner"))
        with self.assertRaises(ParseError):
            parse_simple({"embed": "tags"})
        with self.assertRaises(ParseError):
            parse_simple({"embed": '{"tags": 1}'})

    def test_suffix_filter(self):
        filters = parse_simple({"filter": '{"age_gt":"18"}'}).filters
        self.assertEqual(dict(filters), {"age": Filter(gt=("18",))})

    def test_plain_key_is_equals(self):
        filters = parse_simple({"filter": '{"age":"18"}'}).filters
        self.assertEqual(filters["age"], Filter(eq=("18",)))

    def test_plain_key_with_null_is_an_is_null_test(self):
        filters = parse_simple({"filter": '{"description": null}'}).filters
        self.assertEqual(dict(filters), {"description": Filter(is_null=("true",))})

    def test_suffixes_map_to_slots(self):
        filters = parse_simple({
            "filter": '{"tags_between":["1","5"], "size_not_between":[1,2], "id_eq_any":[1,2],'
                      ' "id_neq_any":[3], "name_like":"ab", "title_inc_any":["a","b"],'
                      ' "body_q":"cat", "note_is_null":null, "flag":true, "code_regex":"^x"}'
        }).filters
        self.assertEqual(filters["tags"], Filter(between=("1", "5")))
        self.assertEqual(filters["size"], Filter(not_between=("1", "2")))
        self.assertEqual(filters["id"], Filter(in_=("1", "2"), not_in=("3",)))
        self.assertEqual(filters["name"], Filter(inc_any=("ab",)))
        self.assertEqual(filters["title"], Filter(inc_any=("a", "b")))
        self.assertEqual(filters["body"], Filter(ts=("cat",)))
        self.assertEqual(filters["note"], Filter(is_null=("true",)))
        self.assertEqual(filters["flag"], Filter(eq=("true",)))
        self.assertEqual(filters["code"], Filter(regex=("^x",)))

    def test_several_suffixes_on_one_field_merge(self):
        filters = parse_simple({"filter": '{"size_gte":"1","size_lte":"9"}'}).filters
        self.assertEqual(filters["size"], Filter(gte=("1",), lte=("9",)))

    def test_malformed_filter_json_is_ignored_with_a_warning(self):
        buffer = io.StringIO()
        original = forge_logging.log.console
        forge_logging.log.console = Console(file=buffer)
        try:
            cond = parse_simple({"filter": '{"name": '})
            cond_list = parse_simple({"filter": '["name"]'})
        finally:
            forge_logging.log.console = original
        self.assertEqual(len(cond.filters), 0)
        self.assertEqual(len(cond_list.filters), 0)
        self.assertIn("ignoring malformed filter", buffer.getvalue())


class BracketProfileTests(unittest.TestCase):
    def test_defaults(self):
        cond = parse_bracket({})
        self.assertEqual(cond.pagination, Page(1, 20))
        self.assertEqual(cond.orders, (Order(None, False),))

    def test_order_and_desc_pairs(self):
        cond = parse_bracket({"order": ["a", "b"], "desc": ["true", "false"]})
        self.assertEqual(cond.orders, (Order("a", True), Order("b", False)))

    def test_order_without_desc_is_ascending(self):
        cond = parse_bracket([("order", "a"), ("order", "b")])
        self.assertEqual(cond.orders, (Order("a", False), Order("b", False)))

    def test_mismatched_desc_count_is_an_error(self):
        with self.assertRaises(ParseError):
            parse_bracket({"order": ["a", "b"], "desc": ["true"]})

    def test_desc_without_order_is_an_error(self):
        with self.assertRaises(ParseError):
            parse_bracket({"desc": ["true"]})

    def test_invalid_desc_value_is_an_error(self):
        with self.assertRaises(ParseError):
            parse_bracket({"order": ["a"], "desc": ["maybe"]})

    def test_page_and_limit(self):
        self.assertEqual(parse_bracket({"page": "2", "limit": "10"}).pagination, Page(2, 10))
        self.assertEqual(parse_bracket({"limit": "500"}).pagination.limit, 100)
        self.assertEqual(parse_bracket({"page": "0"}).pagination, Page(1, 20))

    def test_non_numeric_page_is_an_error(self):
        with self.assertRaises(ParseError):
            parse_bracket({"page": "abc"})
        with self.assertRaises(ParseError):
            parse_bracket({"limit": "1.5"})

    def test_range_token_when_page_and_limit_are_absent(self):
        self.assertEqual(parse_bracket({"range": "[0-9]"}).pagination, Range(0, 9))
        self.assertEqual(parse_bracket({"range": "[0-9]", "page": "1"}).pagination, Page(1, 20))

    def test_bracket_filters(self):
        filters = parse_bracket({
            "age[gte]": ["18"],
            "name": ["bob", "alice"],
            "id[in]": ["1,2", "3"],
            "size[between]": ["1,5,9"],
            "note[isnull]": [""],
            "body[q]": ["cat"],
        }).filters
        self.assertEqual(filters["age"], Filter(gte=("18",)))
        self.assertEqual(filters["name"], Filter(eq=("bob", "alice")))
        self.assertEqual(filters["id"], Filter(in_=("1", "2", "3")))
        self.assertEqual(filters["size"], Filter(between=("1", "5", "9")))
        self.assertEqual(filters["note"], Filter(is_null=("",)))
        self.assertEqual(filters["body"], Filter(ts=("cat",)))

    def test_non_matching_and_reserved_keys_are_ignored(self):
        filters = parse_bracket({
            "weird-key": ["1"],
            "1abc": ["1"],
            "a[b][c]": ["1"],
            "page": ["1"],
            "embed": ['["tags"]'],
        }).filters
        self.assertEqual(len(filters), 0)

    def test_unknown_verb_is_an_error(self):
        with self.assertRaises(ParseError):
            parse_bracket({"age[bogus]": ["1"]})


class ParseQueryTests(unittest.TestCase):
    def test_profile_selection(self):
        self.assertEqual(parse_query({"page": "3"}, QueryProfile.BRACKET).pagination, Page(3, 20))
        self.assertEqual(parse_query({"page": "3"}, "bracket").pagination, Page(3, 20))
        self.assertEqual(parse_query({"page": "3"}).pagination, Range(0, 25))


if __name__ == "__main__":
    unittest.main()
