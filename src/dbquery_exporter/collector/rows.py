"""Row decoding – every column is handled as text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence


@dataclass
class RowSample:
    """Label values and numeric value extracted from one result row."""

    labels: list[str]
    value: float


def to_text(value: Any) -> str:
    """Render a column value as text. NULL becomes an empty string."""
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def row_mapping(columns: Sequence[str], row: Sequence[Any]) -> dict[str, str]:
    """Map column name to text. A repeated column name keeps its last value."""
    return {col: to_text(val) for col, val in zip(columns, row)}


def parse_value(text: str) -> float:
    """Parse *text* as a float, falling back to 0.0 when it is not numeric.

    Only the plain numeric forms are accepted: surrounding whitespace and
    digit separators (``1_000``) count as non-numeric. Hex floats need a
    ``p`` exponent (``0x1p-2``).
    """
    if not text or text != text.strip() or "_" in text:
        return 0.0
    try:
        if text.lstrip("+-")[:2].lower() == "0x":
            if "p" not in text.lower():
                return 0.0
            return float.fromhex(text)
        return float(text)
    except OverflowError:
        return float("-inf") if text.startswith("-") else float("inf")
    except ValueError:
        return 0.0


def extract_sample(data: dict[str, str], labels: Sequence[str], value_column: str) -> RowSample:
    """Build the sample for one row.

    Label values follow the order of *labels*; a label column missing from
    the result yields an empty string in its position.
    """
    return RowSample(
        labels=[data.get(label, "") for label in labels],
        value=parse_value(data.get(value_column, "")),
    )
