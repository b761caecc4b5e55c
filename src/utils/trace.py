"""Deduction trace helpers: CSV export and summary counts."""

import csv
from pathlib import Path
from typing import Any, Dict, Sequence

from src.gridpuzzle.solution import SolutionStep

FIELDNAMES = ["step_number", "label1", "label2", "yes", "description"]


def write_steps_csv(steps: Sequence[SolutionStep], filepath: Path) -> None:
    """Write the step trace to a CSV file, one row per deduction."""
    if not steps:
        print("No trace steps to write")
        return

    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    with open(filepath, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        for number, step in enumerate(steps, start=1):
            writer.writerow({
                "step_number": number,
                "label1": step.label1,
                "label2": step.label2,
                "yes": step.yes,
                "description": (step.description or "").strip(),
            })

    print(f"Trace written to {filepath} ({len(steps)} steps)")


def summarize_steps(steps: Sequence[SolutionStep]) -> Dict[str, Any]:
    pairs = {frozenset((s.label1, s.label2)) for s in steps}
    return {
        "total_steps": len(steps),
        "num_yes": sum(1 for s in steps if s.yes),
        "num_no": sum(1 for s in steps if not s.yes),
        "num_pairs": len(pairs),
        "num_described": sum(1 for s in steps if s.description),
    }
