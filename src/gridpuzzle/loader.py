import json
import os
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from src.utils.io import load_json

from .codec import decode_puzzle
from .errors import ValidationError
from .model import Puzzle
from .persistence import puzzle_from_dict

SUPPORTED_SUFFIXES = (".json", ".jsonl", ".parquet", ".txt")


def _coerce_jsonable(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _coerce_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_coerce_jsonable(v) for v in value]
    # numpy arrays and scalars coming out of parquet
    if hasattr(value, "tolist"):
        return _coerce_jsonable(value.tolist())
    return value


def load_records(file_path: str) -> List[Dict[str, Any]]:
    """
    Reads puzzle records from a file. Handles .json (object or array), .jsonl,
    .parquet and .txt (a single puzzle in canonical text).
    Every record gets an "id"; it is either fragment-shaped
    ({categories, labels, numLabels, clues}) or {"text": <canonical text>}.
    """
    if not os.path.exists(file_path):
        raise FileNotFoundError(f"File not found: {file_path}")

    stem = Path(file_path).stem

    def _normalize(record: Dict[str, Any], idx: int) -> Dict[str, Any]:
        record = _coerce_jsonable(record)
        if not record.get("id"):
            record["id"] = f"{stem}-{idx}"
        return record

    if file_path.endswith(".txt"):
        with open(file_path, "r", encoding="utf-8") as f:
            return [{"id": stem, "text": f.read()}]

    if file_path.endswith(".parquet"):
        df = pd.read_parquet(file_path)
        records = df.to_dict(orient="records")
        return [_normalize(r, i) for i, r in enumerate(records)]

    if file_path.endswith(".json"):
        try:
            payload = load_json(Path(file_path))
        except json.JSONDecodeError:
            # Some sources use ".json" but actually store JSONL.
            return _load_jsonl(file_path, _normalize)
        if isinstance(payload, list):
            return [_normalize(p, i) for i, p in enumerate(payload) if isinstance(p, dict)]
        if isinstance(payload, dict):
            if not payload.get("id"):
                payload["id"] = stem
            return [_normalize(payload, 0)]
        return []

    return _load_jsonl(file_path, _normalize)


def _load_jsonl(file_path: str, normalize) -> List[Dict[str, Any]]:
    data = []
    with open(file_path, "r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(obj, dict):
                data.append(normalize(obj, len(data)))
    return data


def record_to_puzzle(record: Dict[str, Any]) -> Puzzle:
    if isinstance(record.get("text"), str):
        return decode_puzzle(record["text"])
    if "categories" in record:
        return puzzle_from_dict(record)
    raise ValidationError(f"Record {record.get('id')!r} holds no puzzle", "record")


__all__ = ["SUPPORTED_SUFFIXES", "load_records", "record_to_puzzle"]
