"""Test configuration.

Ensures `import unipen` works when running tests without installing the package,
and provides fixtures that write UniPen files into a temporary directory.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


SRC = (Path(__file__).resolve().parents[1] / "src").as_posix()
if SRC not in sys.path:
    sys.path.insert(0, SRC)


SAMPLE = """\
.VERSION 1.0
.DATA_SOURCE Test corpus, tablet session 3
.DATA_ID demo
.COORD X Y T
.HIERARCHY CHARACTER WORD
.X_POINTS_PER_INCH 1000
.HAND R
.AGE 34
.SEX F

.COMMENT first word
.PEN_DOWN
100 200 0
110 210 10
120 215 20
.PEN_UP
125 215 30
.PEN_DOWN
130 190 40
140 185 50
.SEGMENT CHARACTER 0 OK "a"
.SEGMENT CHARACTER 2 GOOD "b"
.SEGMENT WORD 0-2 ? "ab"
"""


@pytest.fixture
def write_unipen(tmp_path):
    """Write `text` to tmp_path/name (latin-1) and return the path."""
    def write(name: str, text: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="latin-1")
        return path
    return write


@pytest.fixture
def sample_file(write_unipen):
    return write_unipen("sample.unipen", SAMPLE)
