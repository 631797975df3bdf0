"""Notifications API access (list and detail stages)."""
from .client import ApiError, FanclubClient, bearer
from .details import DetailFetcher

__all__ = ["ApiError", "DetailFetcher", "FanclubClient", "bearer"]
