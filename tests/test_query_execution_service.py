"""
Query Execution Tests
=====================
Generated SQL run against a loaded DuckDB table.
"""

import pytest

from services import DatasetService, QueryExecutionError, QueryExecutionService, SQLGenerationService


@pytest.fixture
def executor():
    return QueryExecutionService()


@pytest.fixture
def generator():
    return SQLGenerationService()


class TestExecute:

    def test_grouped_count(self, executor, generator, dataset_session):
        sql = generator.synthesize("chart by category", dataset_session.schema)
        result = executor.execute(dataset_session, sql)

        assert result.columns == ("Category", "count")
        assert list(result.rows) == [
            {"Category": "Productivity", "count": 3},
            {"Category": "Games", "count": 2},
            {"Category": "Tools", "count": 1},
        ]

    def test_row_count(self, executor, dataset_session):
        result = executor.execute(dataset_session, "SELECT COUNT(*) AS total_rows FROM user_data")
        assert result.rows == ({"total_rows": 6},)

    def test_limit(self, executor, generator, dataset_session):
        result = executor.execute(dataset_session, generator.synthesize("show first 2", dataset_session.schema))
        assert len(result) == 2
        assert result.columns == ("Software", "Category", "Installs")

    def test_distinct_sorted(self, executor, generator, dataset_session):
        result = executor.execute(dataset_session, generator.synthesize("unique category", dataset_session.schema))
        assert [row["Category"] for row in result.rows] == ["Games", "Productivity", "Tools"]

    def test_search(self, executor, generator, dataset_session):
        sql = generator.synthesize('find "oo" in software', dataset_session.schema)
        result = executor.execute(dataset_session, sql)
        assert [row["Software"] for row in result.rows] == ["Zoom"]

    def test_search_with_quote_in_value(self, executor, generator):
        session = DatasetService().create_session([{"Name": "Bob's Diner"}, {"Name": "Alice"}])
        try:
            sql = generator.synthesize('search for "Bob\'s" by name', session.schema)
            result = executor.execute(session, sql)
            assert result.rows == ({"Name": "Bob's Diner"},)
        finally:
            session.close()

    def test_column_with_embedded_quote(self, executor, generator):
        session = DatasetService().create_session([{'Size "in"': "12"}, {'Size "in"': "8"}])
        try:
            result = executor.execute(session, generator.synthesize("unique size", session.schema))
            assert [row['Size "in"'] for row in result.rows] == ["12", "8"]
        finally:
            session.close()

    def test_result_carries_fingerprint(self, executor, dataset_session):
        result = executor.execute(dataset_session, "SELECT * FROM user_data")
        assert result.fingerprint == dataset_session.fingerprint

    def test_to_frame_keeps_column_order(self, executor, dataset_session):
        result = executor.execute(dataset_session, 'SELECT "Installs", "Software" FROM user_data LIMIT 1')
        assert list(result.to_frame().columns) == ["Installs", "Software"]


class TestTextAggregates:
    """Aggregates over VARCHAR columns holding numbers."""

    def test_average(self, executor, generator, dataset_session):
        result = executor.execute(dataset_session, generator.synthesize("average installs", dataset_session.schema))
        assert result.columns == ("average_Installs",)
        assert result.rows[0]["average_Installs"] == pytest.approx(1160 / 6)

    def test_sum(self, executor, generator, dataset_session):
        result = executor.execute(dataset_session, generator.synthesize("sum of installs", dataset_session.schema))
        assert result.rows == ({"total_Installs": 1160.0},)

    def test_grouped_average(self, executor, generator):
        session = DatasetService().create_session([
            {"Sales": "10", "Region": "North"},
            {"Sales": "30", "Region": "North"},
            {"Sales": "5", "Region": "South"},
        ])
        try:
            result = executor.execute(session, generator.synthesize("average sales by region", session.schema))
            assert result.columns == ("Region", "avg_Sales")
            assert list(result.rows) == [
                {"Region": "North", "avg_Sales": 20.0},
                {"Region": "South", "avg_Sales": 5.0},
            ]
        finally:
            session.close()

    def test_non_numeric_values_are_ignored(self, executor, generator):
        session = DatasetService().create_session([{"Price": "10"}, {"Price": "n/a"}, {"Price": "20"}])
        try:
            result = executor.execute(session, generator.synthesize("average price", session.schema))
            assert result.rows == ({"average_Price": 15.0},)
        finally:
            session.close()


class TestExecuteErrors:

    def test_syntax_error(self, executor, dataset_session):
        with pytest.raises(QueryExecutionError) as exc_info:
            executor.execute(dataset_session, "SELEC * FROM user_data")
        assert str(exc_info.value).startswith("SQL Error: ")
        assert exc_info.value.sql == "SELEC * FROM user_data"
        assert exc_info.value.original_message

    def test_unknown_column(self, executor, dataset_session):
        with pytest.raises(QueryExecutionError):
            executor.execute(dataset_session, 'SELECT "Price" FROM user_data')

    def test_session_still_usable_after_error(self, executor, dataset_session):
        with pytest.raises(QueryExecutionError):
            executor.execute(dataset_session, "SELECT * FROM missing_table")
        assert len(executor.execute(dataset_session, "SELECT * FROM user_data")) == 6
