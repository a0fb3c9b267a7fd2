"""Enumerations for projection strategies and lookup sources."""

from enum import Enum


class CreationStrategy(str, Enum):
    """Alternative persistence paths for creating a user.

    All strategies leave the same stored state; they differ only in which
    shape is read and written, and so in store round trips.

    - BASELINE: full entities in, full entity graph out
    - A: save entity, read projection back, attach id-only supervisor, save projection
    - B: build a projection in memory around an id-only supervisor, save it
    - C: build a detached DTO around a hand-made id-only supervisor DTO, save it
    - D: attach a fully loaded supervisor entity, save, read back as projection
    """

    BASELINE = "baseline"
    A = "a"
    B = "b"
    C = "c"
    D = "d"


class LookupSource(str, Enum):
    """How a user read is resolved."""

    ENTITY = "entity"  # framework-style, one lookup per hop
    QUERY = "query"  # hand-written SQL
