from pathlib import Path
from typing import Tuple, Union


def parse_labels(text: str) -> Tuple[str, ...]:
    """
    One class name per line; blank lines are dropped before indexing.

    Line `i` of the remaining names is the label of class logit `i`.
    """

    labels = tuple(line.strip() for line in text.splitlines() if line.strip())
    if not labels:
        raise ValueError("Label list is empty")
    return labels


def load_labels(path: Union[str, Path]) -> Tuple[str, ...]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Label file not found: {p}")
    return parse_labels(p.read_text(encoding="utf-8"))
