"""CLI entrypoint: load puzzle(s), run the solving engine, and report results."""

import argparse
import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from tqdm import tqdm

from solver import solve_puzzle
from src.gridpuzzle.engine import EngineConfig, SubprocessEngine
from src.gridpuzzle.errors import GridPuzzleError
from src.gridpuzzle.loader import SUPPORTED_SUFFIXES, load_records, record_to_puzzle
from src.gridpuzzle.model import Puzzle
from src.gridpuzzle.persistence import to_fragment
from src.gridpuzzle.solution import Solution
from src.utils.io import save_json
from src.utils.trace import summarize_steps, write_steps_csv


def parse_args(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(description="Solve logic grid puzzles with an external engine")
    parser.add_argument("input", type=Path, help="Puzzle file (.json, .jsonl, .parquet, .txt) or directory")
    parser.add_argument("--output", type=Path, default=None, help="Optional .csv or .json path for results")
    parser.add_argument(
        "--engine",
        default=None,
        help="Solver command; the puzzle file path is appended (default: $GRIDSOLVE_COMMAND or 'gridsolve --json').",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Seconds to wait for the solver")
    parser.add_argument("--trace-dir", type=Path, default=None, help="Write each puzzle's step trace as CSV here")
    parser.add_argument(
        "--text-only",
        action="store_true",
        help="Print the canonical puzzle text instead of solving.",
    )
    parser.add_argument("--link", action="store_true", help="Print a bookmark fragment for each puzzle")
    parser.add_argument("--verbose", action="store_true", help="Log engine calls and protocol problems")
    return parser.parse_args(argv)


def format_solution(
    solution: Optional[Solution],
    puzzle: Optional[Puzzle] = None,
    *,
    include_status: bool = False,
) -> Dict[str, Any]:
    if solution is None or puzzle is None:
        empty = {"header": [], "rows": []}
        if include_status:
            return {"status": "unsolved", **empty}
        return empty

    grid = solution.table(puzzle)
    if include_status:
        return {"status": "solved", **grid}
    return grid


def write_results_csv(results, output_path: Path):
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["id", "grid_solution", "steps"])

        for r in results:
            writer.writerow([
                r["id"],
                json.dumps(r["grid_solution"], ensure_ascii=False, separators=(",", ":")),
                r["steps"]
            ])


def collect_records(input_path: Path) -> List[Dict[str, Any]]:
    if input_path.is_file():
        return load_records(str(input_path))
    if input_path.is_dir():
        records: List[Dict[str, Any]] = []
        for file_path in sorted(input_path.iterdir()):
            if file_path.suffix in SUPPORTED_SUFFIXES:
                records.extend(load_records(str(file_path)))
        return records
    raise ValueError(f"Input path {input_path} is neither file nor directory")


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    records = collect_records(args.input)
    engine = None
    if not args.text_only:
        engine = SubprocessEngine(EngineConfig.from_env(args.engine, args.timeout))

    results = []
    for record in tqdm(records, desc="Solving", unit="puzzle", disable=len(records) < 2):
        puzzle_id = record.get("id", "unknown")
        try:
            puzzle = record_to_puzzle(record)
            if args.text_only:
                print(puzzle.to_canonical_text())
                continue

            solution = solve_puzzle(puzzle, engine)
            if args.trace_dir:
                write_steps_csv(solution.steps, args.trace_dir / f"{puzzle_id}.csv")
            if args.link:
                print(f"{puzzle_id}: #{to_fragment(puzzle, solution)}")

            results.append({
                "id": puzzle_id,
                "grid_solution": format_solution(solution, puzzle),
                "steps": summarize_steps(solution.steps)["total_steps"],
            })
        except GridPuzzleError as e:
            print(f"ERROR: Failed to solve puzzle {puzzle_id}: {e}")
            results.append({
                "id": puzzle_id,
                "grid_solution": format_solution(None),
                "steps": -1,
            })

    if args.text_only:
        return results
    if args.output and args.output.suffix == ".json":
        save_json(args.output, results)
    elif args.output:
        write_results_csv(results, args.output)
    else:
        for r in results:
            print(json.dumps(r, ensure_ascii=False))
    return results


if __name__ == "__main__":
    main()
