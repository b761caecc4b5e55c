"""Tests for the canonical text protocol and engine response parsing."""

import json

import pytest

from src.gridpuzzle.codec import decode_categories, decode_puzzle, encode_puzzle, parse_response
from src.gridpuzzle.errors import ProtocolError, PuzzleFormatError, SolveError, ValidationError
from src.gridpuzzle.model import Clue, Puzzle
from src.gridpuzzle.solution import SolutionStep

SIMPLE_TEXT = """[Categories]
First Name
Angela
Donald
Leo

Country
Germany
Ireland
United States

Year of Birth
1946
1954
1979

[Clues]
1,yes,United States,1946
2,after,Leo,Year of Birth,Germany
3,or,Donald,1946,Ireland
"""


def _name_year_puzzle():
    return Puzzle(
        categories=("Name", "Year"),
        labels=("Anna", "Bob", "1990", "1991"),
        num_labels=2,
        clues=(Clue("1", "yes", (0, 2)),),
    )


def test_encode_matches_expected_layout():
    expected = (
        "[Categories]\n"
        "Name\n"
        "Anna\n"
        "Bob\n"
        "\n"
        "Year\n"
        "1990\n"
        "1991\n"
        "\n"
        "[Clues]\n"
        "1,yes,Anna,1990\n"
    )
    assert encode_puzzle(_name_year_puzzle()) == expected
    assert _name_year_puzzle().to_canonical_text() == expected


def test_encode_prints_categories_and_numbers():
    puzzle = decode_puzzle(SIMPLE_TEXT)
    puzzle = puzzle.add_or_replace_clue(3, "afterexactly", [2, 2, 3, 2], name="4")
    puzzle = puzzle.add_or_replace_clue(4, "twobytwo", [0, 1, 6, 7], name="5")
    lines = encode_puzzle(puzzle).splitlines()
    assert lines[-2] == "4,after,Leo,Year of Birth,Germany,2"
    assert lines[-1] == "5,twobytwo,Angela,Donald,1946,1954"


def test_encode_preserves_clue_order():
    puzzle = _name_year_puzzle()
    puzzle = puzzle.add_or_replace_clue(1, "no", [1, 2], name="z")
    puzzle = puzzle.add_or_replace_clue(2, "yes", [1, 3], name="a")
    clue_lines = encode_puzzle(puzzle).split("[Clues]\n", 1)[1].splitlines()
    assert [line.split(",")[0] for line in clue_lines] == ["1", "z", "a"]


def test_encode_refuses_invalid_puzzle():
    puzzle = Puzzle(categories=("Name", "Year"), labels=("Anna", "Bob", "1990", "1991"), num_labels=2)
    with pytest.raises(ValidationError):
        encode_puzzle(puzzle)


def test_decode_categories_round_trip():
    puzzle = decode_puzzle(SIMPLE_TEXT)
    categories, labels, num_labels = decode_categories(encode_puzzle(puzzle))
    assert categories == list(puzzle.categories)
    assert labels == list(puzzle.labels)
    assert num_labels == puzzle.num_labels


def test_encode_refuses_section_marker_names():
    puzzle = Puzzle(
        categories=("Name", "[Clues]"),
        labels=("Anna", "Bob", "1990", "1991"),
        num_labels=2,
        clues=(Clue("1", "yes", (0, 2)),),
    )
    with pytest.raises(ValidationError):
        encode_puzzle(puzzle)


def test_decode_trims_padded_fields():
    text = "[Categories]\n Name \nAnna\t\n Bob\n\nYear\n1990 \n1991\n\n[Clues]\n 1 , yes , Anna , 1990 \n"
    puzzle = decode_puzzle(text)
    assert puzzle.categories == ("Name", "Year")
    assert puzzle.labels == ("Anna", "Bob", "1990", "1991")
    assert puzzle.clues == (Clue("1", "yes", (0, 2)),)
    assert encode_puzzle(puzzle) == encode_puzzle(_name_year_puzzle())


def test_decode_puzzle_resolves_names_to_indices():
    puzzle = decode_puzzle(SIMPLE_TEXT)
    assert puzzle.categories == ("First Name", "Country", "Year of Birth")
    assert puzzle.num_labels == 3
    assert puzzle.clues == (
        Clue("1", "yes", (5, 6)),
        Clue("2", "after", (2, 2, 3)),
        Clue("3", "or", (1, 6, 4)),
    )
    assert decode_puzzle(encode_puzzle(puzzle)) == puzzle


def test_decode_tells_after_kinds_apart_by_arity():
    text = SIMPLE_TEXT + "4,after,Leo,Year of Birth,Germany,2\n"
    assert decode_puzzle(text).clues[-1] == Clue("4", "afterexactly", (2, 2, 3, 2))


@pytest.mark.parametrize(
    "text",
    [
        "Name\nAnna\nBob\n\n[Clues]\n",
        "[Categories]\nName\nAnna\nBob\n",
        "[Categories]\nName\nAnna\nBob\n\nYear\n1990\n\n[Clues]\n1,yes,Anna,1990\n",
        SIMPLE_TEXT + "4,maybe,Leo,Germany\n",
        SIMPLE_TEXT + "4,yes,Leo,Narnia\n",
        SIMPLE_TEXT + "4,after,Leo,Year of Birth,Germany,0\n",
        SIMPLE_TEXT + "4,after,Leo,Year of Birth,Germany,-1\n",
    ],
)
def test_decode_rejects_malformed_text(text):
    with pytest.raises(PuzzleFormatError):
        decode_puzzle(text)


def test_parse_response_builds_solution():
    body = json.dumps({
        "solution": [{"Name": "Anna", "Year": "1990"}],
        "steps": [{"label1": "Anna", "label2": "1990", "yes": True}],
    })
    solution = parse_response(body)
    assert solution.rows == [{"Name": "Anna", "Year": "1990"}]
    assert solution.steps == [SolutionStep("Anna", "1990", True)]


def test_parse_response_accepts_unsettled_cells_and_descriptions():
    solution = parse_response({
        "solution": [{"Name": "Anna", "Year": None}],
        "steps": [{"label1": "Anna", "label2": "1991", "yes": False, "description": "clue 1"}],
    })
    assert solution.rows[0]["Year"] is None
    assert solution.steps[0].description == "clue 1"


def test_parse_response_raises_engine_error_verbatim():
    with pytest.raises(SolveError) as exc:
        parse_response('{"error": "contradiction"}')
    assert str(exc.value) == "contradiction"


@pytest.mark.parametrize(
    "body",
    [
        "not json",
        "[]",
        {},
        {"error": "x", "solution": [], "steps": []},
        {"error": 3},
        {"solution": []},
        {"steps": []},
        {"solution": {}, "steps": []},
        {"solution": [], "steps": [{"label1": "a", "label2": "b"}]},
        {"solution": [], "steps": [{"label1": "a", "label2": 2, "yes": True}]},
        {"solution": [], "steps": [{"label1": "a", "label2": "b", "yes": 1}]},
        {"solution": [["Anna"]], "steps": []},
        "[" * 100000 + "]" * 100000,
        b"\xff\xfe",
    ],
)
def test_parse_response_rejects_other_shapes(body):
    with pytest.raises(ProtocolError):
        parse_response(body)
