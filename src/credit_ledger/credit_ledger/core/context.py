from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ActorContext:
    """Who is performing a mutation; used only for audit attribution."""

    school_id: int
    user_id: str
    user_name: str
    user_role: str
