import pytest

from placement.core.constants import MAX_FILTER_DEPTH
from placement.core.errors import (
    InvalidNumberError,
    PolicySyntaxError,
    UnknownFilterError,
    UnknownSelectorError,
)
from placement.core.grammar import Clause, Operation
from placement.core.schema import Filter, PlacementPolicy, Replica, Selector
from placement.query.parser import parse, parse_unchecked


def _filter(
    name: str, key: str, value: str, op: Operation = Operation.UNSPECIFIED, *inner: Filter
) -> Filter:
    return Filter(name=name, key=key, value=value, operation=op, inner=list(inner))


def _selector(
    count: int, clause: Clause, attribute: str, filter_name: str, name: str
) -> Selector:
    return Selector(count=count, clause=clause, attribute=attribute, filter=filter_name, name=name)


def test_simple_rep() -> None:
    assert parse("REP 3") == PlacementPolicy(replicas=[Replica(count=3)])


def test_rep_with_backup_factor() -> None:
    p = parse("REP 3 CBF 4")
    assert p == PlacementPolicy(replicas=[Replica(count=3)], container_backup_factor=4)


def test_select_from_wildcard() -> None:
    p = parse("REP 1 IN SPB\nSELECT 1 IN City FROM * AS SPB")
    assert p.replicas == [Replica(count=1, selector="SPB")]
    assert p.selectors == [_selector(1, Clause.UNSPECIFIED, "City", "*", "SPB")]
    assert p.filters == []


def test_select_without_attribute() -> None:
    p = parse("REP 2\n\t\tSELECT 6 FROM *")
    assert p.selectors == [_selector(6, Clause.UNSPECIFIED, "", "*", "")]
    assert p.replicas == [Replica(count=2)]


def test_select_without_attribute_with_filter() -> None:
    p = parse("REP 2\nSELECT 6 FROM F\nFILTER StorageType EQ SSD AS F")
    assert p.filters == [_filter("F", "StorageType", "SSD", Operation.EQ)]
    assert p.selectors == [_selector(6, Clause.UNSPECIFIED, "", "F", "")]


@pytest.mark.parametrize(
    "literal",
    [
        '"double-quoted"',
        "\"with ' single\"",
        "'single-quoted'",
        "'with \" double'",
    ],
)
def test_string_values_are_unquoted(literal: str) -> None:
    q = f"REP 1\nSELECT 1 IN City FROM Filt\nFILTER Property EQ {literal} AND Something NE 7 AS Filt"
    expected = _filter(
        "Filt",
        "",
        "",
        Operation.AND,
        _filter("", "Property", literal[1:-1], Operation.EQ),
        _filter("", "Something", "7", Operation.NE),
    )
    assert parse(q).filters == [expected]


def test_select_clauses() -> None:
    p = parse(
        "REP 4\n"
        "SELECT 3 IN Country FROM *\n"
        "SELECT 2 IN SAME City FROM *\n"
        "SELECT 1 IN DISTINCT Continent FROM *"
    )
    assert p.selectors == [
        _selector(3, Clause.UNSPECIFIED, "Country", "*", ""),
        _selector(2, Clause.SAME, "City", "*", ""),
        _selector(1, Clause.DISTINCT, "Continent", "*", ""),
    ]


def test_simple_filter() -> None:
    p = parse("REP 1\nSELECT 1 IN City FROM Good\nFILTER Rating GT 7 AS Good")
    assert p == PlacementPolicy(
        replicas=[Replica(count=1)],
        selectors=[_selector(1, Clause.UNSPECIFIED, "City", "Good", "")],
        filters=[_filter("Good", "Rating", "7", Operation.GT)],
    )


def test_filter_reference_is_kept_as_placeholder() -> None:
    p = parse(
        "REP 1\n"
        "SELECT 2 IN City FROM Good\n"
        'FILTER Country EQ "RU" AS FromRU\n'
        "FILTER @FromRU AND Rating GT 7 AS Good"
    )
    assert p.filters == [
        _filter("FromRU", "Country", "RU", Operation.EQ),
        _filter(
            "Good",
            "",
            "",
            Operation.AND,
            _filter("FromRU", "", ""),
            _filter("", "Rating", "7", Operation.GT),
        ),
    ]
    assert p.filters[1].inner[0].is_reference


def test_same_operator_chain_is_flattened() -> None:
    p = parse(
        "REP 1\n"
        "SELECT 2 IN City FROM Good\n"
        "FILTER A GT 1 AND B GE 2 AND C LT 3 AND D LE 4\n"
        "  AND E EQ 5 AND F NE 6 AS Good"
    )
    assert p.filters == [
        _filter(
            "Good",
            "",
            "",
            Operation.AND,
            _filter("", "A", "1", Operation.GT),
            _filter("", "B", "2", Operation.GE),
            _filter("", "C", "3", Operation.LT),
            _filter("", "D", "4", Operation.LE),
            _filter("", "E", "5", Operation.EQ),
            _filter("", "F", "6", Operation.NE),
        )
    ]


def test_three_leaf_and_chain_is_one_node() -> None:
    p = parse("REP 1 SELECT 1 FROM F FILTER A EQ 1 AND B EQ 2 AND C EQ 3 AS F")
    (f,) = p.filters
    assert f.name == "F"
    assert f.operation is Operation.AND
    assert [sub.key for sub in f.inner] == ["A", "B", "C"]
    assert all(not sub.inner for sub in f.inner)


def test_and_binds_tighter_than_or() -> None:
    p = parse("REP 1 SELECT 1 IN City FROM F FILTER A EQ 1 AND B EQ 2 OR C EQ 3 AS F")
    (f,) = p.filters
    assert f.name == "F"
    assert f.operation is Operation.OR
    assert len(f.inner) == 2
    first, second = f.inner
    assert first.operation is Operation.AND
    assert first.inner == [
        _filter("", "A", "1", Operation.EQ),
        _filter("", "B", "2", Operation.EQ),
    ]
    assert second == _filter("", "C", "3", Operation.EQ)


def test_filter_precedence_two_and_groups() -> None:
    p = parse(
        "REP 7 IN SPB\n"
        "SELECT 1 IN City FROM SPBSSD AS SPB\n"
        'FILTER City EQ "SPB" AND SSD EQ true OR City EQ "SPB" AND Rating GE 5 AS SPBSSD'
    )
    assert p == PlacementPolicy(
        replicas=[Replica(count=7, selector="SPB")],
        selectors=[_selector(1, Clause.UNSPECIFIED, "City", "SPBSSD", "SPB")],
        filters=[
            _filter(
                "SPBSSD",
                "",
                "",
                Operation.OR,
                _filter(
                    "",
                    "",
                    "",
                    Operation.AND,
                    _filter("", "City", "SPB", Operation.EQ),
                    _filter("", "SSD", "true", Operation.EQ),
                ),
                _filter(
                    "",
                    "",
                    "",
                    Operation.AND,
                    _filter("", "City", "SPB", Operation.EQ),
                    _filter("", "Rating", "5", Operation.GE),
                ),
            )
        ],
    )


def test_brackets_override_precedence() -> None:
    p = parse(
        "REP 7 IN SPB\n"
        "SELECT 1 IN City FROM SPBSSD AS SPB\n"
        'FILTER ( City EQ "SPB" OR SSD EQ true ) AND (City EQ "SPB" OR Rating GE 5) AS SPBSSD'
    )
    assert p.filters == [
        _filter(
            "SPBSSD",
            "",
            "",
            Operation.AND,
            _filter(
                "",
                "",
                "",
                Operation.OR,
                _filter("", "City", "SPB", Operation.EQ),
                _filter("", "SSD", "true", Operation.EQ),
            ),
            _filter(
                "",
                "",
                "",
                Operation.OR,
                _filter("", "City", "SPB", Operation.EQ),
                _filter("", "Rating", "5", Operation.GE),
            ),
        )
    ]


def test_right_hand_group_is_not_merged() -> None:
    p = parse("REP 1 SELECT 1 FROM F FILTER A EQ 1 AND (B EQ 2 AND C EQ 3) AS F")
    (f,) = p.filters
    assert f.operation is Operation.AND
    assert f.inner[0] == _filter("", "A", "1", Operation.EQ)
    assert f.inner[1].operation is Operation.AND
    assert [sub.key for sub in f.inner[1].inner] == ["B", "C"]


def test_left_hand_group_with_same_operation_is_merged() -> None:
    p = parse("REP 1 SELECT 1 FROM F FILTER (A EQ 1 AND B EQ 2) AND C EQ 3 AS F")
    (f,) = p.filters
    assert [sub.key for sub in f.inner] == ["A", "B", "C"]


def test_or_chain_around_and_group_is_flattened() -> None:
    p = parse("REP 1 SELECT 1 FROM F FILTER A EQ 1 OR B EQ 2 AND C EQ 3 OR D EQ 4 AS F")
    (f,) = p.filters
    assert f.operation is Operation.OR
    assert [sub.operation for sub in f.inner] == [Operation.EQ, Operation.AND, Operation.EQ]


def test_quoted_key_and_value() -> None:
    p = parse('REP 1 IN S\nSELECT 1 FROM F AS S\nFILTER "UN-LOCODE" EQ "RU LED" AS F')
    assert p == PlacementPolicy(
        replicas=[Replica(count=1, selector="S")],
        selectors=[_selector(1, Clause.UNSPECIFIED, "", "F", "S")],
        filters=[_filter("F", "UN-LOCODE", "RU LED", Operation.EQ)],
    )


def test_quote_style_does_not_matter() -> None:
    double = parse('REP 1 SELECT 1 FROM F FILTER X EQ "a" AS F')
    single = parse("REP 1 SELECT 1 FROM F FILTER X EQ 'a' AS F")
    assert double == single
    assert double.filters[0].value == "a"


def test_zero_is_a_valid_filter_value() -> None:
    p = parse("REP 1 SELECT 1 FROM F FILTER Price LE 0 AS F")
    assert p.filters[0].value == "0"


def test_keywords_are_case_insensitive() -> None:
    p = parse("rep 1 in x cbf 2 select 2 in same city from f as x filter a ge 5 as f")
    assert p == PlacementPolicy(
        replicas=[Replica(count=1, selector="x")],
        container_backup_factor=2,
        selectors=[_selector(2, Clause.SAME, "city", "f", "x")],
        filters=[_filter("f", "a", "5", Operation.GE)],
    )


def test_statement_keywords_double_as_identifiers() -> None:
    p = parse("REP 1 IN FROM\nSELECT 1 IN Select FROM Filter AS FROM\nFILTER Rep EQ In AS Filter")
    assert p.replicas == [Replica(count=1, selector="FROM")]
    assert p.selectors == [_selector(1, Clause.UNSPECIFIED, "Select", "Filter", "FROM")]
    assert p.filters == [_filter("Filter", "Rep", "In", Operation.EQ)]


def test_forward_filter_reference_allowed() -> None:
    p = parse("REP 3\nSELECT 1 IN City FROM F\nFILTER A EQ 1 AS F")
    assert p.selectors[0].filter == "F"
    assert p.filters[0].name == "F"


def test_missing_selector_rejected() -> None:
    with pytest.raises(UnknownSelectorError) as exc:
        parse("REP 3 IN RU")
    assert exc.value.name == "RU"


def test_missing_filter_rejected() -> None:
    with pytest.raises(UnknownFilterError) as exc:
        parse("REP 3\nSELECT 1 IN City FROM Missing")
    assert exc.value.name == "Missing"


def test_parse_unchecked_skips_reference_validation() -> None:
    p = parse_unchecked("REP 3 IN RU")
    assert p.replicas == [Replica(count=3, selector="RU")]


@pytest.mark.parametrize(
    "query",
    [
        "REP 3\nSELECT 1 IN City FROM F\nFILTER Country KEK RU AS F",  # unknown operation
        "REK 3",  # typo in REP
        "REP 3\nSELECT 1 IN City FROM F\nFILTER Good AND Country EQ RU AS F\nFILTER Rating EQ 5 AS Good",
        "",
        "SELECT 1 FROM *",  # REP is mandatory
        "REP 1 SELECT 1 FROM * REP 2",  # statements out of order
        "REP 1 CBF 2 CBF 3",
        "REP 1 SELECT 1 IN City",  # FROM is mandatory
        "REP 1 SELECT 1 FROM F FILTER A EQ 1",  # AS is mandatory for filters
        "REP 1 SELECT 1 FROM F FILTER (A EQ 1 AS F",
        "REP 1 SELECT 1 FROM F FILTER A EQ 1 AND AS F",
        "REP 1 SELECT 1 IN SAME FROM *",  # clause without attribute
        "REP 01",
    ],
)
def test_syntax_errors(query: str) -> None:
    with pytest.raises(PolicySyntaxError):
        parse(query)


def test_syntax_error_reports_first_offending_token() -> None:
    with pytest.raises(PolicySyntaxError) as exc:
        parse("REP 3\nSELECT 1 IN City FRUM *")
    assert (exc.value.line, exc.value.column) == (2, 17)
    assert "'FRUM'" in exc.value.msg


def test_syntax_error_at_eof() -> None:
    with pytest.raises(PolicySyntaxError) as exc:
        parse("REP")
    assert "<EOF>" in exc.value.msg


@pytest.mark.parametrize("template", ["REP {}", "REP 1 CBF {}", "REP 1 SELECT {} FROM *"])
def test_zero_count_is_a_syntax_error(template: str) -> None:
    with pytest.raises(PolicySyntaxError):
        parse(template.format(0))


@pytest.mark.parametrize("template", ["REP {}", "REP 1 CBF {}", "REP 1 SELECT {} FROM *"])
def test_count_above_uint32_is_invalid_number(template: str) -> None:
    with pytest.raises(InvalidNumberError) as exc:
        parse(template.format(2**32))
    assert exc.value.text == "4294967296"


@pytest.mark.parametrize("digits", [11, 5000])
def test_very_long_count_is_invalid_number(digits: int) -> None:
    text = "9" * digits
    with pytest.raises(InvalidNumberError) as exc:
        parse(f"REP {text}")
    assert exc.value.text == text


def test_nested_groups_up_to_limit_are_accepted() -> None:
    depth = MAX_FILTER_DEPTH
    q = "REP 1 SELECT 1 FROM F FILTER " + "(" * depth + "A EQ 1" + ")" * depth + " AS F"
    p = parse(q)
    assert p.filters == [_filter("F", "A", "1", Operation.EQ)]


@pytest.mark.parametrize("depth", [MAX_FILTER_DEPTH + 1, 400])
def test_nesting_too_deep_is_a_syntax_error(depth: int) -> None:
    q = "REP 1 SELECT 1 FROM F FILTER " + "(" * depth + "A EQ 1" + ")" * depth + " AS F"
    with pytest.raises(PolicySyntaxError) as exc:
        parse(q)
    assert exc.value.msg == "filter nesting too deep"
    assert (exc.value.line, exc.value.column) == (1, 29 + MAX_FILTER_DEPTH)


@pytest.mark.parametrize("count", [1, 2**32 - 1])
def test_count_bounds_accepted(count: int) -> None:
    assert parse(f"REP {count}").replicas == [Replica(count=count)]


def test_parse_is_deterministic() -> None:
    q = "REP 2 IN X\nSELECT 2 IN DISTINCT City FROM F AS X\nFILTER A EQ 1 OR B NE 2 AS F"
    assert parse(q) == parse(q)
