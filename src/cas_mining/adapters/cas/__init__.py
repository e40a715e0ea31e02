"""Thin wrapper over a swat CAS connection."""

from .client import CASClient
from .errors import CASActionError, CASConnectionError, CASError

__all__ = ["CASClient", "CASActionError", "CASConnectionError", "CASError"]
