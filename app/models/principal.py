"""
app/models/principal.py

Purpose: Authenticated principal

The authentication gateway resolves the caller before the request reaches
the handlers; handlers only ever see this value.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """The caller, identified by the third-party provider's stable id."""
    external_id: str
