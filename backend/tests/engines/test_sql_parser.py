"""Unit tests for engines.sql.parser (trim, split_statements)."""

from sqlint.engines.sql.parser import split_statements, trim

TOKENS = ("<%", "%>")


class TestTrim:
    def test_collapses_whitespace(self):
        assert trim("SELECT   *\n\tFROM  t") == "SELECT * FROM t"

    def test_strips_comments(self):
        sql = "SELECT a -- first column\nFROM t # table\n/* filter */ WHERE a = 1"
        assert trim(sql) == "SELECT a FROM t WHERE a = 1"

    def test_double_dash_without_space_is_not_a_comment(self):
        assert trim("SELECT 5--3") == "SELECT 5--3"

    def test_parentheses_and_commas(self):
        assert trim("INSERT INTO t ( a,b ,c ) VALUES ( 1,2,3 )") == "INSERT INTO t (a, b , c) VALUES (1, 2, 3)"

    def test_quoted_spans_untouched(self):
        sql = "SELECT 'a  --  b', \"x  # y\", `weird  col` FROM t"
        assert trim(sql) == sql

    def test_token_spans_untouched(self):
        sql = "SELECT <%  two  spaces -- not a comment %>"
        assert trim(sql, TOKENS) == sql

    def test_token_spans_without_tokens(self):
        assert trim("SELECT <%a  b%>") == "SELECT <%a b%>"


class TestSplitStatements:
    def test_basic(self):
        assert split_statements("SELECT 1; SELECT 2;") == ["SELECT 1", "SELECT 2"]

    def test_semicolon_in_quotes(self):
        sql = "INSERT INTO t VALUES ('a;b'); UPDATE t SET `c;d` = 1"
        assert split_statements(sql) == ["INSERT INTO t VALUES ('a;b')", "UPDATE t SET `c;d` = 1"]

    def test_semicolon_in_token_span(self):
        assert split_statements("SELECT <%a;b%>; SELECT 2", TOKENS) == ["SELECT <%a;b%>", "SELECT 2"]

    def test_empty_statements_dropped(self):
        assert split_statements(";; SELECT 1 ;\n;") == ["SELECT 1"]

    def test_trimmed_script(self):
        script = """
        -- schema
        CREATE TABLE t (id INT);  # first
        INSERT INTO t VALUES (<%1%>);
        """
        assert split_statements(trim(script, TOKENS), TOKENS) == [
            "CREATE TABLE t (id INT)",
            "INSERT INTO t VALUES (<%1%>)",
        ]
