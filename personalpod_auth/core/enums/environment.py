"""Runtime environments.

Used by Settings and the container to pick adapters (console renderer in
development, JSON logs everywhere else).
"""

from enum import Enum


class Environment(str, Enum):
    """Application environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    CI = "ci"
    PRODUCTION = "production"
