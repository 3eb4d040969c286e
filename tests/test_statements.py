"""Tests for StatementBuilder (pure statement synthesis)."""

from datetime import datetime
from decimal import Decimal

import pytest

from mysql_wrapper.core.exceptions import UsageError
from mysql_wrapper.core.expressions import Expression, Operator
from mysql_wrapper.core.models import Column, DataType, OrderDirection, ResultOrder
from mysql_wrapper.core.statements import native_type

ID_7 = Expression(left="id", operator=Operator.EQUALS, right=7)

# ---------------------------------------------------------------------------
# SELECT
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestSelect:
    def test_all_columns(self, builder):
        assert builder.select("users") == "SELECT * FROM `users`"

    def test_fields(self, builder):
        sql = builder.select("users", fields=["id", "name"])
        assert sql == "SELECT `id`,`name` FROM `users`"

    def test_filter(self, builder):
        assert builder.select("users", filter=ID_7) == "SELECT * FROM `users` WHERE `id`=7"

    def test_order(self, builder):
        order = [
            ResultOrder(column="last", direction=OrderDirection.DESC),
            ResultOrder(column="first"),
        ]
        sql = builder.select("users", order=order)
        assert sql == "SELECT * FROM `users` ORDER BY `last` DESC,`first` ASC"

    def test_limit_and_offset(self, builder):
        sql = builder.select("users", index_start=20, max_results=10)
        assert sql == "SELECT * FROM `users` LIMIT 10 OFFSET 20"

    def test_limit_only(self, builder):
        assert builder.select("users", max_results=5) == "SELECT * FROM `users` LIMIT 5"

    @pytest.mark.parametrize("start", [0, -3])
    def test_non_positive_start_means_beginning(self, builder, start):
        sql = builder.select("users", index_start=start, max_results=5)
        assert sql == "SELECT * FROM `users` LIMIT 5"

    def test_offset_without_limit(self, builder):
        sql = builder.select("users", index_start=3)
        assert sql == "SELECT * FROM `users` LIMIT 18446744073709551615 OFFSET 3"

    def test_full_clause_order(self, builder):
        sql = builder.select(
            "users", 5, 10, ["id"], ID_7, [ResultOrder(column="id")]
        )
        assert sql == (
            "SELECT `id` FROM `users` WHERE `id`=7 ORDER BY `id` ASC LIMIT 10 OFFSET 5"
        )

    def test_negative_max_rejected(self, builder):
        with pytest.raises(UsageError):
            builder.select("users", max_results=-1)

    def test_empty_table_rejected(self, builder):
        with pytest.raises(UsageError) as exc_info:
            builder.select("")
        assert exc_info.value.parameter == "table"


@pytest.mark.unit
class TestAggregates:
    def test_exists(self, builder):
        assert builder.exists("t", ID_7) == "SELECT * FROM `t` WHERE `id`=7 LIMIT 1"

    def test_exists_without_filter(self, builder):
        assert builder.exists("t") == "SELECT * FROM `t` LIMIT 1"

    def test_count(self, builder):
        assert builder.count("t") == "SELECT COUNT(*) AS `__count__` FROM `t`"

    def test_count_with_filter(self, builder):
        assert builder.count("t", ID_7) == (
            "SELECT COUNT(*) AS `__count__` FROM `t` WHERE `id`=7"
        )

    def test_sum(self, builder):
        assert builder.sum("t", "amount") == "SELECT SUM(`amount`) AS `__sum__` FROM `t`"

    def test_sum_requires_field(self, builder):
        with pytest.raises(UsageError):
            builder.sum("t", "")


# ---------------------------------------------------------------------------
# INSERT / UPDATE / DELETE
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestInsert:
    def test_single_row(self, builder):
        row = {
            "name": "O'Brien",
            "age": 42,
            "balance": Decimal("10.25"),
            "joined": datetime(2024, 1, 2, 3, 4, 5),
            "notes": None,
        }
        sql = builder.insert("people", row)
        assert sql == (
            "INSERT INTO `people` (`name`,`age`,`balance`,`joined`,`notes`) "
            "VALUES ('O''Brien',42,10.25,'2024-01-02 03:04:05.000000',null)"
        )

    def test_empty_row_rejected(self, builder):
        with pytest.raises(UsageError):
            builder.insert("people", {})

    def test_empty_key_rejected(self, builder):
        with pytest.raises(UsageError):
            builder.insert("people", {"": 1})


@pytest.mark.unit
class TestInsertMultiple:
    def test_one_statement_with_tuples_in_order(self, builder):
        sql = builder.insert_multiple("t", [{"a": 1, "b": 2}, {"a": 3, "b": 4}])
        assert sql == "INSERT INTO `t` (`a`,`b`) VALUES (1,2),(3,4)"

    def test_values_follow_first_row_key_order(self, builder):
        sql = builder.insert_multiple("t", [{"a": 1, "b": 2}, {"b": 4, "a": 3}])
        assert sql == "INSERT INTO `t` (`a`,`b`) VALUES (1,2),(3,4)"

    def test_mismatched_keys_rejected(self, builder):
        with pytest.raises(UsageError, match="same keys"):
            builder.insert_multiple("t", [{"a": 1}, {"a": 1, "b": 2}])

    def test_same_count_different_keys_rejected(self, builder):
        with pytest.raises(UsageError, match="same keys"):
            builder.insert_multiple("t", [{"a": 1}, {"b": 1}])

    def test_empty_batch_rejected(self, builder):
        with pytest.raises(UsageError):
            builder.insert_multiple("t", [])

    def test_mixed_value_types_allowed(self, builder):
        sql = builder.insert_multiple("t", [{"a": 1}, {"a": "x"}])
        assert sql == "INSERT INTO `t` (`a`) VALUES (1),('x')"


@pytest.mark.unit
class TestUpdate:
    def test_assignments_and_filter(self, builder):
        sql = builder.update("t", {"name": "x", "note": None}, ID_7)
        assert sql == "UPDATE `t` SET `name`='x',`note`=null WHERE `id`=7"

    def test_without_filter(self, builder):
        assert builder.update("t", {"active": False}) == "UPDATE `t` SET `active`=0"

    def test_empty_row_rejected(self, builder):
        with pytest.raises(UsageError):
            builder.update("t", {}, ID_7)


@pytest.mark.unit
class TestDelete:
    def test_with_filter(self, builder):
        assert builder.delete("t", ID_7) == "DELETE FROM `t` WHERE `id`=7"

    def test_filter_required(self, builder):
        with pytest.raises(UsageError) as exc_info:
            builder.delete("t", None)
        assert exc_info.value.parameter == "filter"


# ---------------------------------------------------------------------------
# DDL and catalog
# ---------------------------------------------------------------------------


@pytest.mark.unit
class TestCreateTable:
    def test_columns_and_primary_key(self, builder):
        columns = [
            Column(name="id", type=DataType.INT, primary_key=True, nullable=False),
            Column(name="name", type=DataType.VARCHAR, max_length=64, nullable=False),
            Column(name="price", type=DataType.DECIMAL, max_length=10, precision=2),
            Column(name="created", type=DataType.DATETIME),
        ]
        sql = builder.create_table("products", columns)
        assert sql == (
            "CREATE TABLE `products` ("
            "`id` int NOT NULL AUTO_INCREMENT, "
            "`name` varchar(64) NOT NULL, "
            "`price` decimal(10,2) NULL, "
            "`created` datetime(6) NULL, "
            "PRIMARY KEY (`id`)"
            ") ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"
        )

    def test_without_primary_key(self, builder):
        sql = builder.create_table("log", [Column(name="msg", type=DataType.TEXT)])
        assert sql == (
            "CREATE TABLE `log` (`msg` longtext NULL) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4"
        )

    def test_non_integer_primary_key_has_no_auto_increment(self, builder):
        columns = [Column(name="uid", type=DataType.GUID, primary_key=True)]
        sql = builder.create_table("t", columns)
        assert "`uid` varchar(36) NOT NULL," in sql
        assert "AUTO_INCREMENT" not in sql

    def test_requires_columns(self, builder):
        with pytest.raises(UsageError) as exc_info:
            builder.create_table("t", [])
        assert exc_info.value.parameter == "columns"

    def test_rejects_multiple_primary_keys(self, builder):
        columns = [
            Column(name="a", type=DataType.INT, primary_key=True),
            Column(name="b", type=DataType.INT, primary_key=True),
        ]
        with pytest.raises(UsageError, match="Only one primary key"):
            builder.create_table("t", columns)

    def test_rejects_unmapped_type(self, builder):
        with pytest.raises(UsageError):
            builder.create_table("t", [Column(name="g", type=DataType.OTHER)])


@pytest.mark.unit
@pytest.mark.parametrize(
    ("column", "expected"),
    [
        (Column(name="c", type=DataType.VARCHAR), "varchar(255)"),
        (Column(name="c", type=DataType.NVARCHAR, max_length=32), "nvarchar(32)"),
        (Column(name="c", type=DataType.DECIMAL), "decimal"),
        (Column(name="c", type=DataType.LONG), "bigint"),
        (Column(name="c", type=DataType.BOOLEAN), "tinyint(1)"),
        (Column(name="c", type=DataType.BLOB), "longblob"),
        (Column(name="c", type=DataType.TIMESTAMP), "timestamp(6)"),
    ],
)
def test_native_type(column, expected):
    assert native_type(column) == expected


@pytest.mark.unit
class TestTableStatements:
    def test_drop(self, builder):
        assert builder.drop_table("t") == "DROP TABLE IF EXISTS `t`"

    def test_truncate(self, builder):
        assert builder.truncate("t") == "TRUNCATE TABLE `t`"

    def test_show_tables(self, builder):
        assert builder.show_tables() == "SHOW TABLES"

    def test_describe_table_is_scoped_to_database(self, builder):
        sql = builder.describe_table("shop", "orders")
        assert sql == (
            "SELECT * FROM INFORMATION_SCHEMA.COLUMNS "
            "WHERE TABLE_SCHEMA='shop' AND TABLE_NAME='orders' "
            "ORDER BY ORDINAL_POSITION"
        )

    def test_describe_table_escapes_name(self, builder):
        assert "TABLE_NAME='o''rders'" in builder.describe_table("shop", "o'rders")

    def test_max_packet_probe(self, builder):
        assert builder.max_packet_probe() == "SHOW VARIABLES LIKE 'max_allowed_packet'"
