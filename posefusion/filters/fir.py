"""
Finite impulse response (FIR) filter for raw sensor channels.

Each physical channel (left/right/rear wheel ticks, beacon x/y/theta) owns
one SignalFilter. A filter holds a fixed coefficient sequence and a sliding
window of the most recent raw samples:

    y_k = sum_{i=0}^{N-1} h_i * s_{k-i}

where h_0 multiplies the newest sample. The window starts zero-filled, so the
first N outputs include the implicit zero history.

Coefficients are loaded once from a named resource. Bundled resources live in
the ``data`` directory next to this module as ``<name>.ffc`` text files:
floating-point numbers separated by whitespace, ``#`` starting a comment.
"""

import logging
from pathlib import Path
from typing import List, Sequence, Union

import numpy as np

logger = logging.getLogger(__name__)

FILTER_DATA_DIR = Path(__file__).parent / "data"
FILTER_SUFFIX = ".ffc"


def resolve_filter_resource(name: Union[str, Path]) -> Path:
    """
    Resolve a coefficient resource name to a file path.

    A bare name such as ``"we"`` (no directory part, no suffix) resolves to
    the bundled ``data/we.ffc`` first, then to a file of that name in the
    working directory. Anything else is an explicit path and must exist.

    Args:
        name: Bundled resource name or a filesystem path.

    Returns:
        Path to the coefficient file.

    Raises:
        FileNotFoundError: If no matching file exists.
    """
    path = Path(name)
    if len(path.parts) == 1 and not path.suffix:
        bundled = FILTER_DATA_DIR / (path.name + FILTER_SUFFIX)
        if bundled.is_file():
            return bundled
        if path.is_file():
            return path
        raise FileNotFoundError(
            f"Filter coefficient resource '{name}' not found "
            f"(looked for '{bundled}' and '{path}')"
        )

    if not path.is_file():
        raise FileNotFoundError(f"Filter coefficient file not found: {path}")
    return path


def parse_coefficients(text: str, source: str = "<string>") -> List[float]:
    """
    Parse the contents of a ``.ffc`` coefficient file.

    Args:
        text: File contents.
        source: Name used in error messages.

    Returns:
        Ordered list of coefficients.

    Raises:
        ValueError: If the content is empty, non-numeric or non-finite.
    """
    coefficients = []
    for line_no, line in enumerate(text.splitlines(), start=1):
        line = line.split("#", 1)[0]
        for token in line.split():
            try:
                value = float(token)
            except ValueError:
                raise ValueError(
                    f"{source}:{line_no}: malformed coefficient {token!r}"
                ) from None
            if not np.isfinite(value):
                raise ValueError(f"{source}:{line_no}: coefficient must be finite, got {token}")
            coefficients.append(value)

    if not coefficients:
        raise ValueError(f"{source}: no filter coefficients found")
    return coefficients


def load_coefficients(name: Union[str, Path]) -> List[float]:
    """Load and parse a named coefficient resource."""
    path = resolve_filter_resource(name)
    with open(path, "r", encoding="utf-8") as f:
        coefficients = parse_coefficients(f.read(), source=str(path))
    logger.debug("Loaded %d filter coefficients from %s", len(coefficients), path)
    return coefficients


class SignalFilter:
    """
    Streaming FIR filter over one scalar channel.

    Instances are stateful and order-sensitive: feed each channel through its
    own instance, once per cycle.

    Attributes:
        coefficients: Read-only copy of the tap weights (N,).
        window: Read-only copy of the sample history, newest first (N,).

    Example:
        >>> f = SignalFilter([0.5, 0.25, 0.25])
        >>> f.filter(4.0)
        2.0
        >>> f.filter(4.0)
        3.0
    """

    def __init__(self, coefficients: Sequence[float]):
        """
        Initialize filter from explicit coefficients.

        Args:
            coefficients: Tap weights, coefficient[0] applied to the newest sample.

        Raises:
            ValueError: If the sequence is empty or contains non-finite values.
        """
        taps = np.asarray(coefficients, dtype=float).ravel()
        if taps.size == 0:
            raise ValueError("SignalFilter needs at least one coefficient")
        if not np.all(np.isfinite(taps)):
            raise ValueError(f"Filter coefficients must be finite, got {taps}")

        self._coefficients = taps
        self._window = np.zeros_like(taps)

    @classmethod
    def from_resource(cls, name: Union[str, Path]) -> "SignalFilter":
        """Create a filter from a named coefficient resource (see load_coefficients)."""
        return cls(load_coefficients(name))

    @property
    def coefficients(self) -> np.ndarray:
        return self._coefficients.copy()

    @property
    def window(self) -> np.ndarray:
        return self._window.copy()

    def __len__(self) -> int:
        return self._coefficients.size

    def filter(self, sample: float) -> float:
        """
        Push one raw sample and return the filtered value.

        Args:
            sample: Newest raw reading.

        Returns:
            Weighted sum of the window against the coefficients.
        """
        # Shift history one slot older; the oldest sample drops off the end
        self._window[1:] = self._window[:-1].copy()
        self._window[0] = float(sample)
        return float(np.dot(self._coefficients, self._window))

    def reset(self) -> None:
        """Clear the sample history back to zeros."""
        self._window.fill(0.0)

    def __repr__(self) -> str:
        return f"SignalFilter(taps={len(self)})"
