"""Enums for model fields."""

from enum import StrEnum


class UserRole(StrEnum):
    """Account roles."""

    USER = "USER"
    ADMIN = "ADMIN"
