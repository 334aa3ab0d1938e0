#!/usr/bin/env python3
"""Read and write label sets as JSON file dumps."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Sequence, Union

from models import Label
from security import SecurityValidator

PathLike = Union[str, Path]


def read_dump(path: PathLike) -> List[Label]:
    """Load a JSON array of ``{name, color, description}`` objects.

    Raises ValueError when the file is not such an array or an entry has a
    missing name or a malformed color. OSError propagates.
    """
    with open(path, encoding="utf-8") as handle:
        try:
            data = json.load(handle)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path}: invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of labels")

    labels: List[Label] = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            raise ValueError(f"{path}: entry {index} is not an object")
        try:
            name = SecurityValidator.validate_label_name(entry.get("name"))
            color = SecurityValidator.validate_label_color(entry.get("color"))
            description = SecurityValidator.validate_label_description(
                entry.get("description")
            )
        except ValueError as e:
            raise ValueError(f"{path}: entry {index}: {e}") from e
        labels.append(Label(name=name, color=color, description=description))
    return labels


def write_dump(path: PathLike, labels: Sequence[Label]) -> None:
    data = [label.to_dump() for label in labels]
    with open(path, "w", encoding="utf-8") as handle:
        json.dump(data, handle, indent=2, ensure_ascii=False)
        handle.write("\n")
