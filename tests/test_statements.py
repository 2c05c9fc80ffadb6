"""
Decoder tests: lexer, grammar rules and statement values.
"""

import pytest

from unipen import (
    ArgumentKind,
    ComponentList,
    ComponentPoint,
    ComponentRange,
    Decoder,
    GrammarError,
    Keyword,
    Location,
    NumeralError,
    Reserved,
    Statement,
    StatementArgument,
    decode,
)
from unipen.lexer import Cursor, Lexer, Source, decode_label


def first(text):
    """First statement decoded from text."""
    return decode(text)[0]


class TestLexer:
    """Blocks, tokens and positions."""

    def test_blocks_split_on_keyword_lines(self):
        source = Source(".VERSION 1\n.PEN_DOWN\n1 2\n3 4\n.PEN_UP 5 6\n")
        names = [b.name for b in Lexer().blocks(source)]
        assert names == ["VERSION", "PEN_DOWN", "PEN_UP"]

    def test_indented_dot_is_not_a_statement(self):
        source = Source(".COMMENT one\n  .VERSION 2\n")
        blocks = Lexer().blocks(source)
        assert len(blocks) == 1

    def test_text_before_first_statement(self):
        with pytest.raises(GrammarError) as exc:
            decode("stray text\n.VERSION 1\n", "f.unipen")
        assert exc.value.line == 1
        assert exc.value.path == "f.unipen"

    def test_position_is_one_based(self):
        source = Source("ab\ncd\n")
        assert source.position(0) == (1, 1)
        assert source.position(4) == (2, 2)

    def test_quoted_token_spans_lines(self):
        text = '"two\nlines" next'
        cursor = Cursor(Source(text), 0, len(text))
        token = cursor.next()
        assert token.quoted
        assert token.inner == "two\nlines"
        assert cursor.next().text == "next"
        assert cursor.at_end()

    def test_quoted_token_keeps_escaped_quote(self):
        text = r'"say \"hi\"" rest'
        cursor = Cursor(Source(text), 0, len(text))
        assert cursor.next().text == r'"say \"hi\""'

    def test_unterminated_quote(self):
        with pytest.raises(GrammarError):
            decode('.SEGMENT WORD 0 "open\n')

    def test_remaining_tokens_does_not_consume(self):
        text = "a b c"
        cursor = Cursor(Source(text), 0, len(text))
        assert [t.text for t in cursor.remaining_tokens()] == ["a", "b", "c"]
        assert cursor.next().text == "a"


class TestLabels:
    """Quoted label decoding."""

    def test_whitespace_collapses(self):
        assert decode_label('"hello   \n\t world"') == "hello world"

    def test_escapes(self):
        assert decode_label(r'"a\nb\tc\qd"') == "a\nb\tcqd"

    def test_escaped_quote(self):
        assert decode_label(r'"say \"hi\""') == 'say "hi"'

    def test_label_in_segment(self):
        statement = first('.SEGMENT WORD 0 ? "hello   \n  world\\tx"\n')
        assert statement.arguments[-1] == StatementArgument.label("hello world\tx")


class TestNumbers:
    """Numeral decoding."""

    def test_integer(self):
        argument = first(".AGE 42\n").arguments[0]
        assert argument.kind is ArgumentKind.NUMBER
        assert argument.value == 42
        assert isinstance(argument.value, int)

    def test_decimal(self):
        argument = first(".VERSION 1.5\n").arguments[0]
        assert argument.value == 1.5
        assert isinstance(argument.value, float)

    def test_signed_and_exponent(self):
        statement = first(".PEN_DOWN -3 +4 .5 2e3\n")
        assert [a.value for a in statement.arguments] == [-3, 4, 0.5, 2000.0]

    def test_malformed_numeral(self):
        with pytest.raises(NumeralError) as exc:
            decode(".VERSION 1\n.PEN_DOWN 1 2 3x\n", "f.unipen")
        assert exc.value.token == "3x"
        assert exc.value.line == 2

    def test_double_point_is_numeral_error(self):
        with pytest.raises(NumeralError):
            decode(".VERSION 1.2.3\n")

    def test_word_where_number_expected(self):
        with pytest.raises(GrammarError) as exc:
            decode(".VERSION abc\n")
        assert not isinstance(exc.value, NumeralError)


class TestRules:
    """Per-keyword argument rules."""

    def test_coord_channels(self):
        statement = first(".COORD X Y T P\n")
        assert [a.value for a in statement.arguments] == [
            Reserved.X, Reserved.Y, Reserved.TIME, Reserved.PRESSURE,
        ]

    def test_reserved_word_outside_vocabulary(self):
        with pytest.raises(GrammarError):
            decode(".HAND M\n")

    def test_free_text_keeps_rest_of_statement(self):
        statement = first(".DATA_SOURCE Test corpus,  session 3\n")
        assert statement.arguments == (StatementArgument.free_text("Test corpus,  session 3"),)

    def test_strings_strip_quotes(self):
        statement = first('.HIERARCHY "PAGE" WORD\n')
        assert [a.value for a in statement.arguments] == ["PAGE", "WORD"]

    def test_leftover_argument(self):
        with pytest.raises(GrammarError) as exc:
            decode(".VERSION 1 2\n")
        assert "Unexpected argument" in str(exc.value)

    def test_missing_required_argument(self):
        with pytest.raises(GrammarError):
            decode(".VERSION\n")

    def test_empty_pen_statement(self):
        assert first(".PEN_DOWN\n").arguments == ()

    def test_segment_full(self):
        statement = first('.SEGMENT CHARACTER 0:1-0:3 GOOD "a"\n')
        kinds = [a.kind for a in statement.arguments]
        assert kinds == [ArgumentKind.STRING, ArgumentKind.LIST, ArgumentKind.RESERVED, ArgumentKind.LABEL]
        assert statement.arguments[2].value is Reserved.GOOD

    def test_segment_without_quality(self):
        statement = first('.SEGMENT WORD 0 "ab"\n')
        assert [a.kind for a in statement.arguments] == [
            ArgumentKind.STRING, ArgumentKind.LIST, ArgumentKind.LABEL,
        ]


class TestUnknown:
    """The '?' sentinel."""

    def test_single_slot(self):
        assert first(".HAND ?\n").arguments == (StatementArgument.reserved(Reserved.UNKNOWN),)

    def test_free_text_slot(self):
        assert first(".DATA_SOURCE ?\n").arguments[0].is_unknown

    def test_optional_quality(self):
        statement = first(".SEGMENT WORD 0 ?\n")
        assert statement.arguments[2].is_unknown

    def test_quoted_question_mark_is_string(self):
        assert first('.DATA_ID "?"\n').arguments == (StatementArgument.string("?"),)

    @pytest.mark.parametrize("text", [
        ".INCLUDE ?\n",
        ".PEN_DOWN ?\n",
        ".PEN_UP ?\n",
        ".DT ?\n",
        ".START_SET ?\n",
        ".SEGMENT ? 0\n",
        ".VERSION ? 2\n",
    ])
    def test_rejected_outside_metadata(self, text):
        with pytest.raises(GrammarError) as exc:
            decode(text, "f.unipen")
        assert exc.value.line == 1

    def test_pen_data_keeps_numbers_only(self):
        with pytest.raises(GrammarError) as exc:
            decode(".PEN_DOWN 1 2 ?\n")
        assert "'?'" in str(exc.value)


class TestComponentLists:
    """Component list syntax."""

    def test_single(self):
        items = first(".SEGMENT WORD 3\n").arguments[1].value
        assert items == ComponentList((ComponentPoint(3),))

    def test_points_and_ranges(self):
        items = first(".SEGMENT WORD 0:1-0:3,2,4:ALL..5\n").arguments[1].value
        assert list(items) == [
            ComponentRange(ComponentPoint(0, 1), ComponentPoint(0, 3)),
            ComponentPoint(2),
            ComponentRange(ComponentPoint(4), ComponentPoint(5)),
        ]

    def test_all_is_whole_component(self):
        point = first(".SEGMENT WORD 1:ALL\n").arguments[1].value.items[0]
        assert point.is_all

    def test_malformed_list(self):
        with pytest.raises(GrammarError):
            decode(".SEGMENT WORD 1:x\n")

    def test_to_dict(self):
        items = first(".SEGMENT WORD 0:2-1\n").arguments[1].value
        assert items.to_dict() == [{
            "Range": {
                "start": {"component": 0, "point": {"Index": 2}},
                "end": {"component": 1, "point": "All"},
            }
        }]


class TestKeywords:
    """Keyword lookup and user-defined keywords."""

    def test_unknown_keyword_reports_line(self):
        with pytest.raises(GrammarError) as exc:
            decode(".VERSION 1\n.FOO bar\n", "f.unipen")
        assert exc.value.line == 2
        assert exc.value.column == 1
        assert str(exc.value).startswith("f.unipen:2:1:")

    def test_declared_keyword(self):
        statements = decode(".KEYWORD FOO\n.FOO some text\n")
        assert statements[1] == Statement(Keyword.USER_DEFINED, (
            StatementArgument.string("FOO"),
            StatementArgument.free_text("some text"),
        ))

    def test_declarations_persist_across_files(self):
        decoder = Decoder()
        decoder.decode(".KEYWORD FOO\n", "a")
        statements = decoder.decode(".FOO\n", "b")
        assert statements[0].keyword is Keyword.USER_DEFINED

    def test_synthetic_keywords_not_matched(self):
        assert Keyword.lookup("END_OF_INPUT") is None
        assert Keyword.lookup("USER_DEFINED") is None
        assert Keyword.lookup("PEN_DOWN") is Keyword.PEN_DOWN


class TestStatements:
    """Statement values."""

    def test_ends_with_end_of_input(self):
        statements = decode(".VERSION 1\n")
        assert statements[-1].keyword is Keyword.END_OF_INPUT
        assert decode("") == [Statement.end_of_input()]

    def test_location(self):
        statements = decode(".VERSION 1\n\n.AGE 3\n", "f.unipen")
        assert statements[1].location == Location("f.unipen", 3, 1)
        assert "f.unipen:3:1" in statements[1].describe()

    def test_equality_ignores_location(self):
        assert decode(".AGE 3\n", "a") == decode("\n.AGE 3\n", "b")

    def test_to_dict(self):
        assert first(".AGE 42\n").to_dict() == {
            "keyword": "AGE",
            "arguments": [{"Number": {"Integer": 42}}],
        }
        assert first(".COORD X T\n").to_dict()["arguments"] == [
            {"Reserved": "X"}, {"Reserved": "TIME"},
        ]
