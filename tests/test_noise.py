"""Tests for noise-name collection and MERGE USING spans."""

from invograph.analyzers.tsql import (
    collect_correlation_aliases,
    collect_cte_names,
    collect_derived_table_aliases,
    collect_noise_names,
    collect_projection_qualifiers,
    find_matching_paren,
    find_using_spans,
    in_spans,
)


class TestCteNames:
    """Tests for collect_cte_names()."""

    def test_single_cte(self) -> None:
        assert collect_cte_names("WITH C AS (SELECT * FROM dbo.A) SELECT * FROM C") == {"c"}

    def test_chained_ctes_with_column_list(self) -> None:
        clean = (
            "WITH First (Id) AS (SELECT Id FROM dbo.A WHERE x IN (1, 2)),\n"
            "     [Second] AS (SELECT * FROM First)\n"
            "SELECT * FROM [Second]"
        )
        assert collect_cte_names(clean) == {"first", "second"}

    def test_comma_inside_cte_body_is_not_a_cte(self) -> None:
        clean = "WITH C AS (SELECT a, b FROM dbo.T) SELECT a, b AS x FROM C"
        assert collect_cte_names(clean) == {"c"}


class TestDerivedTableAliases:
    """Tests for collect_derived_table_aliases()."""

    def test_alias_after_nested_subquery(self) -> None:
        clean = "SELECT * FROM (SELECT * FROM (SELECT 1 AS x) inner_q) AS outer_q"
        assert collect_derived_table_aliases(clean) == {"inner_q", "outer_q"}

    def test_join_subquery_alias_without_as(self) -> None:
        clean = "SELECT * FROM dbo.A a JOIN (SELECT Id FROM dbo.B) b ON a.Id = b.Id"
        assert collect_derived_table_aliases(clean) == {"b"}

    def test_keyword_after_paren_is_not_alias(self) -> None:
        clean = "SELECT * FROM (SELECT 1 AS x)\nWHERE 1 = 1"
        assert collect_derived_table_aliases(clean) == set()


class TestCorrelationAliases:
    """Tests for collect_correlation_aliases()."""

    def test_aliases_with_and_without_as(self) -> None:
        clean = "FROM [dbo].[Orders] AS o JOIN dbo.OrderLines ol ON ol.OrderId = o.Id"
        assert collect_correlation_aliases(clean) == {"o", "ol"}

    def test_alias_after_tvf_arguments(self) -> None:
        clean = "FROM dbo.tvf_Items(123, (SELECT 1)) it JOIN dbo.Products p ON 1 = 1"
        assert collect_correlation_aliases(clean) == {"it", "p"}

    def test_keywords_are_not_aliases(self) -> None:
        clean = "SELECT * FROM dbo.A WHERE 1 = 1 UNION SELECT * FROM dbo.B ORDER BY 1"
        assert collect_correlation_aliases(clean) == set()


class TestProjectionQualifiers:
    """Tests for collect_projection_qualifiers()."""

    def test_dotted_columns_and_star(self) -> None:
        clean = "SELECT o.Id, [ol].[Qty], u.* FROM dbo.Orders o"
        assert collect_projection_qualifiers(clean) == {"o", "ol", "u"}

    def test_function_calls_are_not_qualifiers(self) -> None:
        clean = "SELECT dbo.fn_Total(o.Id) AS t FROM dbo.Orders o"
        assert collect_projection_qualifiers(clean) == {"o"}

    def test_stops_at_from(self) -> None:
        clean = "SELECT Id FROM dbo.Orders WHERE x.y = 1"
        assert collect_projection_qualifiers(clean) == set()


class TestCollectNoiseNames:
    """Tests for the merged exclusion set."""

    def test_union_of_all_sources(self) -> None:
        clean = (
            "WITH recent AS (SELECT * FROM dbo.Orders)\n"
            "SELECT r.Id, d.Total FROM recent r\n"
            "JOIN (SELECT Id, Total FROM dbo.Lines) AS d ON d.Id = r.Id"
        )
        noise = collect_noise_names(clean)
        assert noise == frozenset({"recent", "r", "d"})
        assert "dbo.orders" not in noise


class TestParenSpans:
    """Tests for depth-counted paren matching and USING spans."""

    def test_matching_paren_nested(self) -> None:
        text = "f(a, (b), ((c)))x"
        assert find_matching_paren(text, 1) == len(text) - 2

    def test_unbalanced_returns_end(self) -> None:
        text = "USING (SELECT (1"
        assert find_matching_paren(text, 6) == len(text)

    def test_using_span_covers_subquery(self) -> None:
        clean = "MERGE dbo.T AS t USING (SELECT * FROM (SELECT 1 AS x) q) AS s ON 1 = 1"
        spans = find_using_spans(clean)
        assert len(spans) == 1
        start, end = spans[0]
        assert clean[start:end] == "SELECT * FROM (SELECT 1 AS x) q"
        assert in_spans(clean.index("FROM"), spans)
        assert not in_spans(clean.index("MERGE"), spans)
        assert not in_spans(end, spans)

    def test_direct_using_has_no_span(self) -> None:
        assert find_using_spans("MERGE dbo.T USING dbo.S ON 1 = 1") == ()
