import unittest

from sqlalchemy.dialects import postgresql, sqlite

from crudforge.core.errors import ParseError
from crudforge.core.query import ConditionCompiler, Filter, FilterSet, parse_simple
from crudforge.core.query.operators import BRACKET_VERBS, EXPRESSIONS, SUFFIX_VERBS, split_suffix
from crudforge.db import describe

from base import Drive, Tag


def _sql(expr, dialect=None) -> str:
    dialect = dialect or sqlite.dialect()
    return str(expr.compile(dialect=dialect, compile_kwargs={"literal_binds": True}))


class SplitSuffixTests(unittest.TestCase):
    def test_longest_suffix_wins(self):
        self.assertEqual(split_suffix("size_not_between"), ("size", "not_between"))
        self.assertEqual(split_suffix("size_between"), ("size", "between"))
        self.assertEqual(split_suffix("name_neq_any"), ("name", "not_in"))
        self.assertEqual(split_suffix("name_eq_any"), ("name", "in_"))
        self.assertEqual(split_suffix("name_neq"), ("name", "ne"))

    def test_unknown_suffix_is_equals_on_whole_key(self):
        self.assertEqual(split_suffix("created_at"), ("created_at", "eq"))
        self.assertEqual(split_suffix("age"), ("age", "eq"))
        self.assertEqual(split_suffix("_q"), ("_q", "eq"))

    def test_verb_tables_are_read_only(self):
        for table in (BRACKET_VERBS, SUFFIX_VERBS, EXPRESSIONS):
            with self.assertRaises(TypeError):
                table["custom"] = "eq"


class ConditionCompilerTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.drives = ConditionCompiler(describe(Drive))
        cls.tags = ConditionCompiler(describe(Tag))

    def _compile(self, compiler, raw_filter):
        return compiler.compile(parse_simple({"filter": raw_filter}).filters)

    def test_greater_than_from_suffix(self):
        (clause,) = self._compile(self.drives, '{"size_gt":"18"}')
        self.assertEqual((clause.field, clause.verb, clause.operands), ("size", "gt", ("18",)))
        self.assertEqual(_sql(clause.expression()), "drives.size > 18")

    def test_plain_key_compiles_to_equals(self):
        (clause,) = self._compile(self.drives, '{"size":"18"}')
        self.assertEqual(clause.verb, "eq")
        self.assertEqual(_sql(clause.expression()), "drives.size = 18")

    def test_equals_uses_only_the_first_operand(self):
        (clause,) = self.drives.compile_filter("name", Filter(eq=("a", "b")))
        self.assertEqual(clause.operands, ("a",))
        (clause,) = self.drives.compile_filter("name", Filter(ne=("a", "b")))
        self.assertEqual(clause.operands, ("a",))

    def test_in_consumes_the_whole_list(self):
        (clause,) = self.drives.compile_filter("id", Filter(in_=("1", "2", "3")))
        self.assertEqual(clause.operands, ("1", "2", "3"))
        self.assertIn("drives.id IN (1, 2, 3)", _sql(clause.expression()))
        (clause,) = self.drives.compile_filter("id", Filter(not_in=("4", "5")))
        self.assertIn("drives.id NOT IN (4, 5)", _sql(clause.expression()))

    def test_between_pairs(self):
        (clause,) = self._compile(self.drives, '{"size_between":["1","5"]}')
        self.assertEqual(clause.operands, ("1", "5"))
        self.assertEqual(_sql(clause.expression()), "drives.size BETWEEN 1 AND 5")

    def test_between_drops_the_unpaired_operand(self):
        clauses = self._compile(self.drives, '{"size_between":["1","5","9"]}')
        self.assertEqual([c.operands for c in clauses], [("1", "5")])
        clauses = self._compile(self.drives, '{"size_between":["1","5","9","12"]}')
        self.assertEqual([c.operands for c in clauses], [("1", "5"), ("9", "12")])

    def test_not_between_negates_each_pair(self):
        clauses = self.drives.compile_filter("size", Filter(not_between=("1", "5", "9", "12")))
        sql = [_sql(c.expression()) for c in clauses]
        self.assertEqual(len(sql), 2)
        for text in sql:
            self.assertIn("NOT BETWEEN", text)

    def test_inc_any_ors_substring_matches(self):
        (clause,) = self._compile(self.drives, '{"name_inc_any":["a","b"]}')
        self.assertEqual(clause.operands, ("a", "b"))
        self.assertEqual(
            _sql(clause.expression()),
            "drives.name LIKE '%a%' OR drives.name LIKE '%b%'",
        )

    def test_like_wraps_the_first_operand(self):
        (clause,) = self.drives.compile_filter("name", Filter(like=("ab", "cd")))
        self.assertEqual(_sql(clause.expression()), "drives.name LIKE '%ab%'")
        (clause,) = self.drives.compile_filter("name", Filter(not_like=("ab",)))
        self.assertEqual(_sql(clause.expression()), "drives.name NOT LIKE '%ab%'")

    def test_is_null_ignores_operands(self):
        (clause,) = self.drives.compile_filter("description", Filter(is_null=("false",)))
        self.assertEqual(clause.operands, ())
        self.assertEqual(_sql(clause.expression()), "drives.description IS NULL")

    def test_regex_is_case_insensitive(self):
        (clause,) = self.drives.compile_filter("name", Filter(regex=("^ab",)))
        self.assertEqual(_sql(clause.expression(), postgresql.dialect()), "drives.name ~ '(?i)^ab'")
        self.assertEqual(_sql(clause.expression()), "drives.name REGEXP '(?i)^ab'")

    def test_full_text_uses_the_declared_index_column(self):
        (clause,) = self._compile(self.drives, '{"description_q":"cat"}')
        self.assertEqual(clause.column, "description_tsv")
        sql = _sql(clause.expression(), postgresql.dialect())
        self.assertIn("drives.description_tsv @@ to_tsquery('cat')", sql)

    def test_full_text_falls_back_to_the_field(self):
        (clause,) = self.tags.compile_filter("label", Filter(ts=("cat",)))
        self.assertEqual(clause.column, "label")

    def test_empty_slots_are_inert(self):
        self.assertEqual(self.drives.compile(FilterSet({"name": Filter()})), ())
        self.assertEqual(list(self.drives.compile_filter("size", Filter(between=("1",)))), [])

    def test_one_clause_per_slot_in_emission_order(self):
        clauses = self.drives.compile_filter("size", Filter(gte=("1",), lte=("9",), eq=("4",)))
        self.assertEqual([c.verb for c in clauses], ["eq", "gte", "lte"])

    def test_unknown_field_fails_when_rendered(self):
        (clause,) = self._compile(self.drives, '{"nope":"1"}')
        with self.assertRaises(ParseError):
            clause.expression()

    def test_operands_are_coerced_to_the_column_type(self):
        (clause,) = self.drives.compile_filter("locked", Filter(eq=("true",)))
        self.assertEqual(_sql(clause.expression()), "drives.locked = 1")
        (clause,) = self.drives.compile_filter("size", Filter(gt=("18",)))
        self.assertEqual(_sql(clause.expression()), "drives.size > 18")
        (clause,) = self.drives.compile_filter("size", Filter(eq=("big",)))
        with self.assertRaises(ParseError):
            clause.expression()


if __name__ == "__main__":
    unittest.main()
