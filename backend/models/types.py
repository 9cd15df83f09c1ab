"""Shared type definitions for type checking.

Uses NewType for IDs to provide compile-time type safety - prevents mixing
different ID types (e.g., passing AlertID where TournamentID expected).

Uses TypeAlias for complex types that are purely structural.
"""

from typing import NewType, TypeAlias

# ID types using NewType for type safety
TournamentID = NewType("TournamentID", str)
AlertID = NewType("AlertID", str)
CycleID = NewType("CycleID", str)

# Structural aliases using TypeAlias
AgeGroupList: TypeAlias = list[str]  # e.g. ["U9", "U10"]
TeamTypeList: TypeAlias = list[str]  # boys / girls / mixed
Coordinates: TypeAlias = tuple[float, float]  # (latitude, longitude)
