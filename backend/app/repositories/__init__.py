"""Repository layer for data access."""

from app.repositories.base import BaseRepository
from app.repositories.fpl_repository import FederalPovertyLevelRepository
from app.repositories.rule_set_repository import RuleSetRepository

__all__ = [
    "BaseRepository",
    "RuleSetRepository",
    "FederalPovertyLevelRepository",
]
