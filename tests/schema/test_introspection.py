"""Tests for the DESCRIBE-based and metadata-based introspection strategies."""

from procsql_schema.core.models.base import Dialect
from procsql_schema.schema.introspection import (
    DescribeIntrospection,
    MetadataIntrospection,
    parse_describe_output,
    strategy_for,
)
from procsql_schema.schema.models import FetchStatus


class TestParseDescribeOutput:
    """Tests for parse_describe_output()."""

    def test_partition_section(self):
        """Partition columns listed again under the marker are flagged, not added."""
        rows = [
            ("", "", ""),
            ("c1", "int"),
            ("c2", "string"),
            ("# Partition Information", ""),
            ("c2", "string"),
        ]
        row = parse_describe_output(rows)
        assert row.column_names == ["C1", "C2"]
        assert row.get_column("c1").is_partition_key is False
        assert row.get_column("c2").is_partition_key is True
        assert all(not name.startswith("#") for name in row.column_names)

    def test_hive_output(self, hive_describe_orders):
        row = parse_describe_output(hive_describe_orders)
        assert row.column_names == ["ID", "AMOUNT", "CUSTOMER", "ORDER_DATE"]
        assert row.partition_keys == ["ORDER_DATE"]
        assert row.get_type("amount") == "decimal(10,2)"

    def test_marker_rows_outside_partition_section_are_skipped(self):
        rows = [
            ("# col_name", "data_type"),
            ("id", "int"),
            ("# Detailed Table Information", None),
        ]
        row = parse_describe_output(rows)
        assert row.column_names == ["ID"]
        assert row.partition_keys == []

    def test_unknown_partition_column_is_ignored(self):
        rows = [
            ("c1", "int"),
            ("# Partition Information", None),
            ("ghost", "string"),
        ]
        row = parse_describe_output(rows, table="t")
        assert row.column_names == ["C1"]
        assert row.partition_keys == []

    def test_null_name_and_type(self):
        rows = [(None, None), ("c1", None)]
        row = parse_describe_output(rows)
        assert row.column_names == ["C1"]
        assert row.get_type("c1") == ""

    def test_empty_output(self):
        assert len(parse_describe_output([])) == 0


class TestDescribeIntrospection:
    """Tests for DescribeIntrospection."""

    def test_fetch_table_schema(self, scripted_executor, scripted_result, hive_describe_orders):
        scripted_executor.script(
            "DESCRIBE sales.orders", scripted_result(rows=hive_describe_orders)
        )
        fetch = DescribeIntrospection(scripted_executor).fetch_table_schema("hive", "sales.orders")

        assert fetch.status is FetchStatus.FOUND
        assert fetch.row.partition_keys == ["ORDER_DATE"]
        assert scripted_executor.calls == [("execute", "DESCRIBE sales.orders", "hive")]
        assert scripted_executor.released == 1

    def test_empty_table_is_found(self, scripted_executor, scripted_result):
        scripted_executor.script("DESCRIBE t", scripted_result())
        fetch = DescribeIntrospection(scripted_executor).fetch_table_schema("hive", "t")
        assert fetch.status is FetchStatus.FOUND
        assert len(fetch.row) == 0

    def test_query_failure_is_a_fault(self, scripted_executor):
        scripted_executor.script("DESCRIBE missing", "Table not found 'missing'")
        fetch = DescribeIntrospection(scripted_executor).fetch_table_schema("hive", "missing")
        assert fetch.status is FetchStatus.FAULT
        assert "Table not found" in fetch.error
        assert fetch.cause is not None
        assert not fetch.cacheable

    def test_select_schema_strips_alias_prefix(self, scripted_executor, scripted_result):
        select = "SELECT id, amount FROM sales.orders"
        scripted_executor.script(
            f"SELECT * FROM ({select}) t LIMIT 1",
            scripted_result(
                rows=[(1, 10)],
                columns=[("t.id", "int"), ("amount", "decimal(10,2)"), ("tt.x", "string")],
            ),
        )
        fetch = DescribeIntrospection(scripted_executor).fetch_select_schema("hive", select)

        assert fetch.status is FetchStatus.FOUND
        assert fetch.row.column_names == ["ID", "AMOUNT", "TT.X"]
        assert fetch.row.get_type("id") == "int"
        assert scripted_executor.calls[0][0] == "execute"

    def test_select_failure_is_a_fault(self, scripted_executor):
        fetch = DescribeIntrospection(scripted_executor).fetch_select_schema("hive", "SELECT x")
        assert fetch.status is FetchStatus.FAULT


class TestMetadataIntrospection:
    """Tests for MetadataIntrospection."""

    def test_fetch_table_schema_prepares_select(self, scripted_executor, scripted_result):
        scripted_executor.script(
            "SELECT * FROM public.accounts",
            scripted_result(columns=[("id", "int4"), ("owner", "varchar")]),
        )
        fetch = MetadataIntrospection(scripted_executor).fetch_table_schema(
            "ops", "public.accounts"
        )

        assert fetch.status is FetchStatus.FOUND
        assert fetch.row.column_names == ["ID", "OWNER"]
        assert fetch.row.get_type("owner") == "varchar"
        assert scripted_executor.calls == [("prepare", "SELECT * FROM public.accounts", "ops")]
        assert scripted_executor.released == 1

    def test_prepare_failure_is_not_found(self, scripted_executor):
        fetch = MetadataIntrospection(scripted_executor).fetch_table_schema("ops", "missing")
        assert fetch.status is FetchStatus.NOT_FOUND
        assert fetch.row is None
        assert fetch.warnings
        assert not fetch.cacheable

    def test_describe_failure_keeps_partial_row(self, scripted_executor, scripted_result):
        scripted_executor.script(
            "SELECT * FROM wide",
            scripted_result(
                columns=[("a", "int")], describe_error=RuntimeError("driver gave up")
            ),
        )
        fetch = MetadataIntrospection(scripted_executor).fetch_table_schema("ops", "wide")

        assert fetch.status is FetchStatus.FOUND
        assert fetch.row.column_names == ["A"]
        assert "driver gave up" in fetch.warnings[0]

    def test_strict_mode_faults(self, scripted_executor, scripted_result):
        scripted_executor.script(
            "SELECT * FROM wide",
            scripted_result(columns=[("a", "int")], describe_error=RuntimeError("boom")),
        )
        strategy = MetadataIntrospection(scripted_executor, strict=True)

        assert strategy.fetch_table_schema("ops", "missing").status is FetchStatus.FAULT
        assert strategy.fetch_table_schema("ops", "wide").status is FetchStatus.FAULT

    def test_select_schema_prepares_statement_directly(self, scripted_executor, scripted_result):
        select = "SELECT id AS account_id FROM accounts"
        scripted_executor.script(select, scripted_result(columns=[("account_id", "int4")]))
        fetch = MetadataIntrospection(scripted_executor).fetch_select_schema("ops", select)

        assert fetch.status is FetchStatus.FOUND
        assert fetch.row.column_names == ["ACCOUNT_ID"]
        assert scripted_executor.calls == [("prepare", select, "ops")]

    def test_select_describe_failure_is_a_fault(self, scripted_executor, scripted_result):
        select = "SELECT 1"
        scripted_executor.script(
            select, scripted_result(describe_error=RuntimeError("no metadata"))
        )
        fetch = MetadataIntrospection(scripted_executor).fetch_select_schema("ops", select)
        assert fetch.status is FetchStatus.FAULT

    def test_select_prepare_failure_is_not_found(self, scripted_executor):
        fetch = MetadataIntrospection(scripted_executor).fetch_select_schema("ops", "SELECT bad")
        assert fetch.status is FetchStatus.NOT_FOUND


class TestStrategyFor:
    """Tests for strategy_for()."""

    def test_selects_variant_by_dialect(self, scripted_executor):
        describe = strategy_for(Dialect.DESCRIBE_BASED, scripted_executor)
        metadata = strategy_for(
            Dialect.METADATA_BASED, scripted_executor, strict_metadata_faults=True
        )
        assert isinstance(describe, DescribeIntrospection)
        assert isinstance(metadata, MetadataIntrospection)
        assert metadata.strict is True
        assert describe.dialect is Dialect.DESCRIBE_BASED
