import json
from urllib.parse import quote, unquote

import pytest

from src.gridpuzzle.errors import PersistenceError
from src.gridpuzzle.model import Clue, Puzzle
from src.gridpuzzle.persistence import from_fragment, load_fragment, puzzle_from_dict, to_fragment
from src.gridpuzzle.solution import Solution, SolutionStep


def _puzzle():
    return Puzzle(
        categories=("Name", "Year"),
        labels=("Anna", "Bob", "1990", "1991"),
        num_labels=2,
        clues=(Clue("1", "yes", (0, 2)), Clue("2", "after", (1, 1, 0))),
    )


def test_fragment_is_percent_encoded_state():
    fragment = to_fragment(_puzzle())
    assert "{" not in fragment and "," not in fragment
    state = json.loads(unquote(fragment))
    assert state == {
        "categories": ["Name", "Year"],
        "labels": ["Anna", "Bob", "1990", "1991"],
        "numLabels": 2,
        "clues": [
            {"name": "1", "kind": "yes", "params": [0, 2]},
            {"name": "2", "kind": "after", "params": [1, 1, 0]},
        ],
    }


def test_round_trip_with_and_without_solution():
    puzzle = _puzzle()
    assert from_fragment(to_fragment(puzzle)) == (puzzle, None)

    solution = Solution(
        rows=[{"Name": "Anna", "Year": "1990"}],
        steps=[SolutionStep("Anna", "1990", True, "clue 1")],
    )
    assert from_fragment("#" + to_fragment(puzzle, solution)) == (puzzle, solution)


def test_in_progress_puzzle_survives():
    draft = Puzzle.empty(3).add_category("Name").set_label(0, 1, "Bob")
    restored, _ = from_fragment(to_fragment(draft))
    assert restored == draft


def test_string_params_from_form_selects_are_coerced():
    state = {
        "categories": ["Name", "Year"],
        "labels": ["Anna", "Bob", "1990", "1991"],
        "numLabels": "2",
        "clues": [{"name": "1", "kind": "yes", "params": ["0", "3"]}],
    }
    puzzle = puzzle_from_dict(state)
    assert puzzle.num_labels == 2
    assert puzzle.clues[0].params == (0, 3)


def test_whole_float_numbers_are_accepted():
    state = {"categories": [], "labels": [], "numLabels": 3.0, "clues": []}
    assert puzzle_from_dict(state) == Puzzle.empty(3)


@pytest.mark.parametrize(
    "fragment",
    [
        "",
        "#",
        "%E0%A4%A",
        quote("not json"),
        quote("[1, 2]"),
        quote(json.dumps({"categories": ["Name"], "labels": ["Anna"], "numLabels": 2})),
        quote(json.dumps({"categories": ["Name"], "labels": ["Anna", "Bob"], "numLabels": 2,
                          "clues": [{"name": "1", "kind": "maybe", "params": [0, 1]}]})),
        quote(json.dumps({"categories": ["Name"], "labels": ["Anna", "Bob"], "numLabels": 2,
                          "clues": [{"name": "1", "kind": "yes", "params": [0, 9]}]})),
        quote(json.dumps({"categories": [1], "labels": ["Anna", "Bob"], "numLabels": 2})),
        quote('{"categories": [], "labels": [], "numLabels": 1e999}'),
        quote('{"categories": [], "labels": [], "numLabels": 1.5}'),
        quote(json.dumps({"categories": ["Name"], "labels": ["Anna", "Bob"], "numLabels": 2,
                          "clues": [{"name": "1", "kind": "yes", "params": [0, 1.5]}]})),
        quote(json.dumps({"categories": ["Name"], "labels": ["Anna", "Bob"], "numLabels": True})),
        quote("[" * 100000 + "]" * 100000),
    ],
)
def test_malformed_fragments_fall_back_to_empty(fragment):
    assert from_fragment(fragment) == (Puzzle.empty(), None)


def test_load_fragment_is_strict():
    with pytest.raises(PersistenceError):
        load_fragment(quote("not json"))
    with pytest.raises(PersistenceError):
        load_fragment(quote(json.dumps({"categories": ["Name"], "labels": ["A", "B"], "numLabels": 2,
                                        "solution": {"error": "x"}})))


@pytest.mark.parametrize(
    "payload",
    [
        '{"categories": [], "labels": [], "numLabels": 1e999}',
        '{"categories": [], "labels": [], "numLabels": 2.5}',
        "[" * 100000 + "]" * 100000,
        '{"categories": ' + "[" * 100000 + "]" * 100000 + "}",
    ],
)
def test_load_fragment_wraps_numeric_and_nesting_failures(payload):
    with pytest.raises(PersistenceError):
        load_fragment(quote(payload))
