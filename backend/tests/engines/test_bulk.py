"""Unit tests for engines.bulk helpers."""

import os

from sqlint.core.settings import QuerySettings
from sqlint.engines.bulk import (
    build_insert_sql,
    build_load_sql,
    csv_rows,
    loaded_id_range,
    normalize_rows,
    remove_staging_file,
    use_insert,
    write_staging_file,
)


class TestNormalizeRows:
    def test_sequences(self):
        rows, fields = normalize_rows([("a", 1), ["b", 2]], ["name", "qty"])
        assert rows == [["a", 1], ["b", 2]]
        assert fields == ["name", "qty"]

    def test_mappings_take_first_row_keys(self):
        rows, fields = normalize_rows([{"name": "a", "qty": 1}, {"qty": 2, "name": "b"}])
        assert fields == ["name", "qty"]
        assert rows == [["a", 1], ["b", 2]]

    def test_mappings_follow_given_fields(self):
        rows, _ = normalize_rows([{"name": "a", "qty": 1}], ["qty"])
        assert rows == [[1]]

    def test_generator_input(self):
        rows, _ = normalize_rows(((i,) for i in range(3)))
        assert rows == [[0], [1], [2]]


def test_use_insert_threshold():
    assert use_insert(1000, QuerySettings())
    assert not use_insert(1001, QuerySettings())
    assert use_insert(10**6, QuerySettings(max_rows_using_insert=-1))
    assert not use_insert(1, QuerySettings(max_rows_using_insert=0))


class TestBuildInsertSql:
    def test_with_fields(self):
        sql = build_insert_sql("items", [["a", 1], [None, ""]], ["name", "qty"], QuerySettings())
        assert sql == "INSERT INTO `items` (`name`, `qty`) VALUES (<%a%>, <%1%>), (NULL, '')"

    def test_without_fields(self):
        sql = build_insert_sql("items", [[True, "{NOW()}"]], [], QuerySettings())
        assert sql == "INSERT INTO `items` VALUES (<%1%>, NOW())"


class TestStagingFile:
    def test_csv_values(self):
        assert csv_rows([[None, True, False, 1.5, "a\\b"]]) == [["\\N", "1", "0", "1.5", "a\\\\b"]]

    def test_write_and_remove(self, tmp_path):
        path = write_staging_file([["a", 1], [None, "x,y"], ['say "hi"', "back\\slash"]], str(tmp_path))

        assert os.path.dirname(path) == str(tmp_path)
        assert path.endswith(".csv")
        with open(path, "rb") as fh:
            content = fh.read()
        assert content == b'a,1\r\n\\N,"x,y"\r\n"say ""hi""",back\\\\slash\r\n'

        remove_staging_file(path)
        assert not os.path.exists(path)
        # already gone: no error
        remove_staging_file(path)

    def test_unique_names(self, tmp_path):
        first = write_staging_file([[1]], str(tmp_path))
        second = write_staging_file([[1]], str(tmp_path))
        assert first != second


def test_build_load_sql():
    sql = build_load_sql("/tmp/abc.csv", "items", ["name", "qty"], "utf8")
    assert sql == (
        "LOAD DATA LOCAL INFILE '/tmp/abc.csv' INTO TABLE `items` CHARACTER SET utf8 "
        "FIELDS TERMINATED BY ',' OPTIONALLY ENCLOSED BY '\"' LINES TERMINATED BY '\\r\\n' "
        "(`name`, `qty`)"
    )
    assert build_load_sql("/tmp/abc.csv", "items", [], "utf8").endswith("LINES TERMINATED BY '\\r\\n'")


def test_loaded_id_range():
    assert loaded_id_range(100, 5) == [96, 97, 98, 99, 100]
    assert loaded_id_range(0, 5) == []
