import unittest

from sqlalchemy import select
from sqlalchemy.dialects import sqlite

from crudforge.core.query import Page, Range, pagination_header
from crudforge.core.query.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

from base import Drive


def _sql(stmt) -> str:
    return str(stmt.compile(dialect=sqlite.dialect(), compile_kwargs={"literal_binds": True}))


class PageTests(unittest.TestCase):
    def test_offset_is_page_minus_one_times_limit(self):
        for page, limit in [(1, 1), (1, 20), (2, 10), (7, 100), (3, 33)]:
            p = Page(page, limit)
            self.assertEqual(p.offset, (page - 1) * limit)
            self.assertEqual(p.limit, min(max(limit, 1), 100))

    def test_non_positive_values_fall_back_to_defaults(self):
        p = Page(0, 0)
        self.assertEqual((p.page, p.limit), (1, DEFAULT_PAGE_SIZE))
        p = Page(-4, -1)
        self.assertEqual((p.page, p.limit, p.offset), (1, DEFAULT_PAGE_SIZE, 0))

    def test_limit_is_clamped_to_maximum(self):
        p = Page(3, 500)
        self.assertEqual(p.limit, MAX_PAGE_SIZE)
        self.assertEqual(p.offset, 200)

    def test_indexes(self):
        p = Page(2, 10)
        self.assertEqual((p.start_index(), p.end_index()), (10, 19))

    def test_apply_sets_limit_and_offset(self):
        sql = _sql(Page(3, 10).apply(select(Drive)))
        self.assertIn("LIMIT 10 OFFSET 20", sql)


class RangeTests(unittest.TestCase):
    def test_range_is_applied_without_clamping(self):
        for start, end in [(0, 24), (5, 14), (100, 399), (10, 5)]:
            r = Range(start, end)
            self.assertEqual(r.offset, start)
            self.assertEqual(r.limit, end - start + 1)

    def test_apply_sets_limit_and_offset(self):
        sql = _sql(Range(5, 14).apply(select(Drive)))
        self.assertIn("LIMIT 10 OFFSET 5", sql)


class PaginationHeaderTests(unittest.TestCase):
    def test_window_covering_everything_is_ok(self):
        self.assertEqual(pagination_header(Range(0, 24), 10), (200, "items 0-24/10"))
        self.assertEqual(pagination_header(Range(0, 9), 10), (200, "items 0-9/10"))

    def test_partial_windows_are_partial_content(self):
        self.assertEqual(pagination_header(Range(0, 8), 10), (206, "items 0-8/10"))
        self.assertEqual(pagination_header(Range(10, 19), 30), (206, "items 10-19/30"))
        self.assertEqual(pagination_header(Page(1, 20), 50), (206, "items 0-19/50"))

    def test_empty_result(self):
        self.assertEqual(pagination_header(Range(0, 25), 0), (200, "items 0-25/0"))


if __name__ == "__main__":
    unittest.main()
