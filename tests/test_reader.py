"""
Reader tests: files, include expansion and the full pipeline.
"""

from pathlib import Path

import pytest

from unipen import (
    Config,
    CoordinateRange,
    FileReadError,
    GrammarError,
    IncludeRecursionError,
    Keyword,
    MissingIncludeError,
    Reserved,
    Skill,
    Statement,
    StatementArgument,
    TranslationError,
    load,
    parse,
)
from unipen.reader import Reader


def markers(statements):
    """Paths carried by INCLUDE markers, in stream order."""
    return [s.arguments[0].value for s in statements if s.keyword is Keyword.INCLUDE]


def balanced(statements):
    """Whether the INCLUDE / END_OF_INPUT stack never underflows and ends empty."""
    depth = 0
    for statement in statements:
        if statement.keyword is Keyword.INCLUDE:
            depth += 1
        elif statement.keyword is Keyword.END_OF_INPUT:
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


class TestParse:
    """parse() on single files."""

    def test_single_file_is_bracketed(self, sample_file):
        statements = parse(sample_file)
        assert statements[0].keyword is Keyword.INCLUDE
        assert statements[0].arguments[0].value == str(sample_file)
        assert statements[-1].keyword is Keyword.END_OF_INPUT
        assert balanced(statements)

    def test_locations_carry_path(self, sample_file):
        statements = parse(sample_file)
        assert statements[1].location.path == str(sample_file)
        assert statements[1].location.line == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileReadError) as exc:
            parse(tmp_path / "absent.unipen")
        assert "absent.unipen" in str(exc.value)

    def test_size_limit(self, sample_file):
        with pytest.raises(FileReadError) as exc:
            parse(sample_file, config=Config(max_file_size=10))
        assert "limit" in str(exc.value)

    def test_latin1_default(self, tmp_path):
        path = tmp_path / "legacy.unipen"
        path.write_bytes(b".DATA_SOURCE Caf\xe9 corpus\n")
        document = load(path)
        assert document.data_source == "Café corpus"

    def test_encoding_mismatch(self, tmp_path):
        path = tmp_path / "legacy.unipen"
        path.write_bytes(b".DATA_SOURCE Caf\xe9\n")
        with pytest.raises(FileReadError):
            parse(path, config=Config(encoding="utf-8"))

    def test_grammar_error_names_file(self, write_unipen):
        path = write_unipen("bad.unipen", ".VERSION 1\n.NOPE\n")
        with pytest.raises(GrammarError) as exc:
            parse(path)
        assert exc.value.path == str(path)
        assert exc.value.line == 2

    def test_deterministic(self, sample_file):
        assert parse(sample_file) == parse(sample_file)
        assert load(sample_file) == load(sample_file)


class TestIncludes:
    """.INCLUDE expansion."""

    @pytest.fixture
    def tree(self, write_unipen, tmp_path):
        """top includes a and b; a includes c."""
        write_unipen("c.unipen", ".PEN_DOWN 3 3 0\n")
        write_unipen("a.unipen", ".PEN_DOWN 1 1 0\n.INCLUDE c.unipen\n")
        write_unipen("sub/b.unipen", ".PEN_DOWN 2 2 0\n")
        top = write_unipen(
            "top.unipen",
            ".COORD X Y T\n.INCLUDE a.unipen\n.INCLUDE sub/b.unipen\n",
        )
        return top, tmp_path

    def test_markers_balance(self, tree):
        top, include_dir = tree
        statements = parse(top, include_dir)
        includes = sum(1 for s in statements if s.keyword is Keyword.INCLUDE)
        ends = sum(1 for s in statements if s.keyword is Keyword.END_OF_INPUT)
        assert includes == ends == 4
        assert balanced(statements)

    def test_depth_first_order(self, tree):
        top, include_dir = tree
        statements = parse(top, include_dir)
        assert markers(statements) == [
            str(top),
            str(include_dir / "a.unipen"),
            str(include_dir / "c.unipen"),
            str(include_dir / "sub/b.unipen"),
        ]

    def test_directive_replaced(self, tree):
        top, include_dir = tree
        statements = parse(top, include_dir)
        assert "a.unipen" not in markers(statements)
        assert statements[2].keyword is Keyword.INCLUDE
        assert statements[3].keyword is Keyword.PEN_DOWN

    def test_load_names_sets_after_files(self, tree):
        top, include_dir = tree
        document = load(top, include_dir)
        names = [s.name for s in document.component_sets]
        assert names == [
            str(include_dir / "a.unipen"),
            str(include_dir / "c.unipen"),
            str(include_dir / "sub/b.unipen"),
        ]
        assert [s.coordinates[0].x for s in document.component_sets] == [1.0, 3.0, 2.0]

    def test_missing_include_dir(self, tree):
        top, _ = tree
        with pytest.raises(MissingIncludeError):
            parse(top)

    def test_missing_target(self, write_unipen, tmp_path):
        top = write_unipen("top.unipen", ".INCLUDE nowhere.unipen\n")
        with pytest.raises(FileReadError):
            parse(top, tmp_path)

    def test_declarations_reach_included_files(self, write_unipen, tmp_path):
        write_unipen("child.unipen", ".SCANNER flatbed\n")
        top = write_unipen("top.unipen", ".KEYWORD SCANNER\n.INCLUDE child.unipen\n")
        statements = parse(top, tmp_path)
        assert any(s.keyword is Keyword.USER_DEFINED for s in statements)

    def test_declarations_from_included_header(self, write_unipen, tmp_path):
        write_unipen("defs.unipen", ".KEYWORD SCANNER\n")
        top = write_unipen("top.unipen", ".INCLUDE defs.unipen\n.SCANNER flatbed\n")
        statements = parse(top, tmp_path)
        user = [s for s in statements if s.keyword is Keyword.USER_DEFINED]
        assert user[0].arguments[1].value == "flatbed"
        assert user[0].location.path == str(top)

    def test_unknown_include_target(self, write_unipen, tmp_path):
        top = write_unipen("top.unipen", ".INCLUDE ?\n")
        with pytest.raises(GrammarError):
            parse(top, tmp_path)

    def test_include_needs_file_name(self, tmp_path):
        directive = Statement(Keyword.INCLUDE, (StatementArgument.reserved(Reserved.UNKNOWN),))
        with pytest.raises(TranslationError):
            Reader(tmp_path)._include_path(directive, "top.unipen")


class TestRecursionGuards:
    """Include cycles and depth limits."""

    def test_self_include(self, write_unipen, tmp_path):
        top = write_unipen("loop.unipen", ".INCLUDE loop.unipen\n")
        with pytest.raises(IncludeRecursionError):
            parse(top, tmp_path)

    def test_cycle(self, write_unipen, tmp_path):
        write_unipen("b.unipen", ".INCLUDE a.unipen\n")
        a = write_unipen("a.unipen", ".INCLUDE b.unipen\n")
        with pytest.raises(IncludeRecursionError) as exc:
            parse(a, tmp_path)
        assert len(exc.value.chain) == 3
        assert "cycle" in str(exc.value)

    def test_repeated_include_is_not_a_cycle(self, write_unipen, tmp_path):
        write_unipen("leaf.unipen", ".COMMENT leaf\n")
        top = write_unipen("top.unipen", ".INCLUDE leaf.unipen\n.INCLUDE leaf.unipen\n")
        assert len(markers(parse(top, tmp_path))) == 3

    def test_depth_limit(self, write_unipen, tmp_path):
        write_unipen("c.unipen", ".COMMENT c\n")
        write_unipen("b.unipen", ".INCLUDE c.unipen\n")
        a = write_unipen("a.unipen", ".INCLUDE b.unipen\n")
        assert balanced(parse(a, tmp_path))
        # two includes below a
        assert len(markers(parse(a, tmp_path, Config(max_include_depth=2)))) == 3
        with pytest.raises(IncludeRecursionError):
            parse(a, tmp_path, Config(max_include_depth=1))


class TestExampleCorpus:
    """The corpus shipped under examples/data."""

    DATA = Path(__file__).parent.parent / "examples" / "data"

    def test_load(self):
        document = load(self.DATA / "session.unipen", self.DATA)
        assert [s.name for s in document.component_sets] == ["it", "on"]
        assert document.writer.skill is Skill.GOOD
        on = document.component_set("on")
        assert on.segments[-1].coordinates == (CoordinateRange(0, 8),)
        assert on.coordinates[-1].time == pytest.approx(0.336)
