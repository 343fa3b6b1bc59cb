"""Tests for lexical preprocessing."""

from invograph.analyzers.tsql import (
    preprocess,
    strip_comments_and_strings,
    strip_insert_column_lists,
    strip_type_parameter_lists,
)


class TestStripCommentsAndStrings:
    """Tests for comment and literal removal."""

    def test_removes_line_comment(self) -> None:
        text = "EXEC dbo.Real; -- EXEC dbo.Fake\nSELECT 1"
        clean = strip_comments_and_strings(text)
        assert "Fake" not in clean
        assert "EXEC dbo.Real;" in clean
        assert "SELECT 1" in clean

    def test_removes_multiline_block_comment(self) -> None:
        text = "A /* line one\nEXEC dbo.Fake\n*/ B"
        assert strip_comments_and_strings(text) == "A   B"

    def test_block_comment_does_not_fuse_tokens(self) -> None:
        """FROM/**/dbo.T must stay two tokens."""
        assert strip_comments_and_strings("FROM/**/dbo.T") == "FROM dbo.T"

    def test_removes_string_with_doubled_quote(self) -> None:
        text = "SELECT 'it''s EXEC dbo.Fake' AS x"
        clean = strip_comments_and_strings(text)
        assert "Fake" not in clean
        assert clean.startswith("SELECT")
        assert clean.endswith("AS x")

    def test_comment_markers_inside_block_comment(self) -> None:
        text = "/* -- nested 'quote */ EXEC dbo.Real"
        assert strip_comments_and_strings(text).strip() == "EXEC dbo.Real"

    def test_output_never_longer(self) -> None:
        text = "SELECT 'x' /* y */ -- z\nFROM t"
        assert len(strip_comments_and_strings(text)) <= len(text)


class TestStripTypeParameterLists:
    """Tests for parameterized data type cleanup."""

    def test_decimal_precision_removed(self) -> None:
        assert strip_type_parameter_lists("DECLARE @n DECIMAL(10,2) = 0") == "DECLARE @n DECIMAL = 0"

    def test_nvarchar_length_removed_case_insensitive(self) -> None:
        assert strip_type_parameter_lists("@Name nvarchar (50),") == "@Name nvarchar,"

    def test_max_length_removed(self) -> None:
        assert strip_type_parameter_lists("VARCHAR(MAX)") == "VARCHAR"

    def test_other_calls_untouched(self) -> None:
        assert strip_type_parameter_lists("dbo.fn_Char(1)") == "dbo.fn_Char(1)"

    def test_int_has_no_parameters(self) -> None:
        assert strip_type_parameter_lists("INT, DATETIME2(7)") == "INT, DATETIME2"


class TestStripInsertColumnLists:
    """Tests for INSERT column list removal."""

    def test_insert_into_column_list(self) -> None:
        text = "INSERT INTO dbo.Target(Col1, Col2) VALUES (1, 2)"
        assert strip_insert_column_lists(text) == "INSERT INTO dbo.Target VALUES (1, 2)"

    def test_bracketed_target_and_columns(self) -> None:
        text = "INSERT INTO [dbo].[T] ([C]) SELECT 1"
        assert strip_insert_column_lists(text) == "INSERT INTO [dbo].[T] SELECT 1"

    def test_merge_insert_column_list(self) -> None:
        text = "WHEN NOT MATCHED BY TARGET THEN INSERT (Col) VALUES (s.Col);"
        assert strip_insert_column_lists(text) == "WHEN NOT MATCHED BY TARGET THEN INSERT VALUES (s.Col);"

    def test_insert_without_into(self) -> None:
        text = "INSERT dbo.Log (a, b) VALUES (1, 2)"
        assert strip_insert_column_lists(text) == "INSERT dbo.Log VALUES (1, 2)"

    def test_merge_insert_values_untouched(self) -> None:
        text = "WHEN NOT MATCHED THEN INSERT VALUES (1, 2);"
        assert strip_insert_column_lists(text) == text

    def test_insert_without_column_list_untouched(self) -> None:
        text = "INSERT INTO dbo.AuditLog VALUES (1)"
        assert strip_insert_column_lists(text) == text


class TestPreprocess:
    """Tests for the full preprocessing chain."""

    def test_runs_every_pass(self) -> None:
        text = (
            "-- header\n"
            "CREATE PROCEDURE dbo.P @s NVARCHAR(20) = 'x' AS\n"
            "INSERT INTO dbo.T (A) VALUES (1) /* done */"
        )
        clean = preprocess(text)
        assert "header" not in clean
        assert "NVARCHAR(" not in clean
        assert "'x'" not in clean
        assert "(A)" not in clean
        assert "done" not in clean
        assert "INSERT INTO dbo.T VALUES (1)" in clean

    def test_idempotent(self) -> None:
        text = "SELECT 'a' -- b\nFROM dbo.T /* c */ WHERE x = DECIMAL(1,2)"
        assert preprocess(preprocess(text)) == preprocess(text)
