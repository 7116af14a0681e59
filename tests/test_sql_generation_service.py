"""
SQL Synthesizer Tests
=====================
Pattern priority, emitted SQL shapes and totality of rule-based synthesis.
"""

import pytest

from services import INTENT_PATTERNS, SQLGenerationService


@pytest.fixture
def generator():
    return SQLGenerationService()


class TestScenarios:
    """End-to-end question to SQL examples."""

    def test_chart_by_category(self, generator, software_schema):
        sql = generator.synthesize("chart by category", software_schema)
        assert sql == (
            'SELECT "Category", COUNT(*) AS count FROM user_data '
            'GROUP BY "Category" ORDER BY count DESC'
        )

    def test_greater_than_with_number(self, generator):
        sql = generator.synthesize("find records where Price > 100", ["Price"])
        assert sql == 'SELECT * FROM user_data WHERE "Price" > 100 ORDER BY "Price" DESC'

    def test_grouped_average(self, generator):
        sql = generator.synthesize("average sales by region", ["Sales", "Region"])
        assert sql == (
            'SELECT "Region", AVG(TRY_CAST("Sales" AS DOUBLE)) AS avg_Sales FROM user_data '
            'GROUP BY "Region" ORDER BY avg_Sales DESC'
        )

    def test_grouped_sum(self, generator):
        sql = generator.synthesize("total sales by region", ["Sales", "Region"])
        assert sql == (
            'SELECT "Region", SUM(TRY_CAST("Sales" AS DOUBLE)) AS total_Sales FROM user_data '
            'GROUP BY "Region" ORDER BY total_Sales DESC'
        )


class TestPriority:
    """First matching pattern wins."""

    def test_chart_beats_average(self, generator, software_schema):
        pattern, sql = generator.classify("chart the average installs", software_schema)
        assert pattern == "chart"
        assert "COUNT(*) AS count" in sql
        assert "AVG" not in sql

    def test_show_chart_beats_show_first(self, generator, software_schema):
        pattern, _ = generator.classify("show top categories as a bar", software_schema)
        assert pattern == "show_chart"

    def test_count_beats_average(self, generator):
        pattern, sql = generator.classify("count the average price", ["Price"])
        assert pattern == "count"
        assert sql == "SELECT COUNT(*) AS total_rows FROM user_data"

    def test_pattern_table_order(self):
        assert [p.name for p in INTENT_PATTERNS] == [
            "chart", "show_chart", "show_by", "show_first", "show_all",
            "count_group", "count", "average_group", "average", "sum_group",
            "sum", "max", "min", "distinct", "greater_than", "less_than",
            "sort", "search", "group_by", "sample",
        ]


class TestShowPatterns:

    def test_show_by_groups(self, generator, software_schema):
        sql = generator.synthesize("show installs by category", software_schema)
        assert sql.startswith('SELECT "Category", COUNT(*) AS count')

    def test_show_top_with_number(self, generator, software_schema):
        assert generator.synthesize("show top 25 rows", software_schema) == "SELECT * FROM user_data LIMIT 25"

    def test_show_top_defaults_to_ten(self, generator, software_schema):
        assert generator.synthesize("show top rows", software_schema) == "SELECT * FROM user_data LIMIT 10"

    def test_show_all(self, generator, software_schema):
        assert generator.synthesize("show all data", software_schema) == "SELECT * FROM user_data"


class TestAggregatePatterns:

    def test_row_count(self, generator, software_schema):
        assert generator.synthesize("count rows", software_schema) == "SELECT COUNT(*) AS total_rows FROM user_data"

    def test_count_by_column(self, generator):
        sql = generator.synthesize("count by status", ["Name", "Status"])
        assert sql == (
            'SELECT "Status", COUNT(*) AS count FROM user_data '
            'GROUP BY "Status" ORDER BY count DESC'
        )

    def test_plain_sum(self, generator, software_schema):
        sql = generator.synthesize("sum of installs", software_schema)
        assert sql == 'SELECT SUM(TRY_CAST("Installs" AS DOUBLE)) AS total_Installs FROM user_data'

    def test_grouped_average_falls_through_without_second_column(self, generator):
        sql = generator.synthesize("average sales by month", ["Sales", "Region"])
        assert sql == 'SELECT AVG(TRY_CAST("Sales" AS DOUBLE)) AS average_Sales FROM user_data'

    def test_alias_with_space_in_column(self, generator):
        sql = generator.synthesize("average unit price", ["Unit Price"])
        assert sql == 'SELECT AVG(TRY_CAST("Unit Price" AS DOUBLE)) AS average_Unit_Price FROM user_data'


class TestRowPatterns:

    def test_highest(self, generator):
        sql = generator.synthesize("highest price", ["Item", "Price"])
        assert sql == 'SELECT * FROM user_data ORDER BY "Price" DESC LIMIT 1'

    def test_lowest(self, generator):
        sql = generator.synthesize("lowest price", ["Item", "Price"])
        assert sql == 'SELECT * FROM user_data ORDER BY "Price" ASC LIMIT 1'

    def test_distinct(self, generator, software_schema):
        sql = generator.synthesize("unique category", software_schema)
        assert sql == 'SELECT DISTINCT "Category" FROM user_data ORDER BY "Category"'

    def test_less_than(self, generator):
        sql = generator.synthesize("price less than 50", ["Item", "Price"])
        assert sql == 'SELECT * FROM user_data WHERE "Price" < 50 ORDER BY "Price" ASC'

    def test_comparison_without_number_falls_through(self, generator):
        sql = generator.synthesize("price more than expected", ["Item", "Price"])
        assert sql == "SELECT * FROM user_data LIMIT 20"

    def test_sort_descending(self, generator):
        sql = generator.synthesize("sort by price descending", ["Item", "Price"])
        assert sql == 'SELECT * FROM user_data ORDER BY "Price" DESC'

    def test_sort_ascending_by_default(self, generator):
        sql = generator.synthesize("sort by price", ["Item", "Price"])
        assert sql == 'SELECT * FROM user_data ORDER BY "Price" ASC'


class TestSearchPattern:

    def test_search_keeps_original_case(self, generator, software_schema):
        sql = generator.synthesize('find "Zoom" in software', software_schema)
        assert sql == "SELECT * FROM user_data WHERE \"Software\" LIKE '%Zoom%'"

    def test_search_value_quotes_are_doubled(self, generator):
        sql = generator.synthesize('search for "Bob\'s Diner" by name', ["Name", "City"])
        assert sql == "SELECT * FROM user_data WHERE \"Name\" LIKE '%Bob''s Diner%'"

    def test_search_without_quotes_uses_sample(self, generator, software_schema):
        assert generator.synthesize("find zoom", software_schema) == "SELECT * FROM user_data LIMIT 20"


class TestFallbacks:

    def test_by_catch_all(self, generator, software_schema):
        sql = generator.synthesize("installs by category", software_schema)
        assert sql == (
            'SELECT "Category", COUNT(*) AS count FROM user_data '
            'GROUP BY "Category" ORDER BY count DESC'
        )

    def test_default_sample(self, generator, software_schema):
        assert generator.synthesize("hello", software_schema) == "SELECT * FROM user_data LIMIT 20"

    def test_empty_schema_never_fails(self, generator):
        assert generator.synthesize("chart by category", []) == "SELECT * FROM user_data LIMIT 20"

    def test_embedded_quote_in_column_is_doubled(self, generator):
        sql = generator.synthesize("unique size", ['Size "in"'])
        assert sql == 'SELECT DISTINCT "Size ""in""" FROM user_data ORDER BY "Size ""in"""'

    def test_custom_table_name(self, software_schema):
        generator = SQLGenerationService(table_name="uploads")
        assert generator.synthesize("count rows", software_schema) == "SELECT COUNT(*) AS total_rows FROM uploads"


QUESTIONS = [
    "", "chart by category", "show me everything", "count", "avg installs",
    "total", "max", "min", "distinct software", "> 5", "< 5", "order",
    "where is 'x'", "by", "what's up?", "show first 3", "display all",
]

SCHEMAS = [
    [], ["A"], ["Software", "Category", "Installs"], ["Sales", "Region"],
    ["Created At", "Status", "Amount"],
]


class TestProperties:

    @pytest.mark.parametrize("schema", SCHEMAS)
    def test_always_select_from_table(self, generator, schema):
        for question in QUESTIONS:
            sql = generator.synthesize(question, schema)
            assert sql.startswith("SELECT")
            assert "user_data" in sql

    @pytest.mark.parametrize("schema", SCHEMAS)
    def test_idempotent(self, generator, schema):
        for question in QUESTIONS:
            assert generator.synthesize(question, schema) == generator.synthesize(question, schema)

    def test_referenced_columns_belong_to_schema(self, generator, software_schema):
        import re
        for question in QUESTIONS:
            sql = generator.synthesize(question, software_schema)
            for column in re.findall(r'"([^"]+)"', sql):
                assert column in software_schema
