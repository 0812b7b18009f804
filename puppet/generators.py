"""
Numeric generators used to parameterize selector templates.

Each factory returns a fresh, infinite, lazy iterator. A search instantiates
its own iterator, so no cursor is shared between searches.
"""

from functools import partial
from typing import Callable, Dict, Iterator, Optional

GeneratorFactory = Callable[[], Iterator[int]]


def positive_odd() -> Iterator[int]:
    """1, 3, 5, 7, ..."""
    i = -1
    while True:
        i += 2
        yield i


def positive_even() -> Iterator[int]:
    """2, 4, 6, 8, ..."""
    i = 0
    while True:
        i += 2
        yield i


def positive_int(start: Optional[int] = None) -> Iterator[int]:
    """Count up by one from start, or from 1 when start is not an integer."""
    # bool is an int subclass but never a meaningful start
    i = start if isinstance(start, int) and not isinstance(start, bool) else 1
    while True:
        yield i
        i += 1


GENERATORS: Dict[str, Callable[..., Iterator[int]]] = {
    "odd": positive_odd,
    "even": positive_even,
    "int": positive_int,
}


def get_generator(name: str, start: Optional[int] = None) -> GeneratorFactory:
    """
    Resolve a generator factory by name ("odd", "even" or "int").

    start only applies to "int"; the returned factory takes no arguments.
    """
    try:
        factory = GENERATORS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown generator: {name} (expected one of {', '.join(GENERATORS)})"
        ) from None

    if factory is positive_int:
        return partial(positive_int, start)
    return factory
