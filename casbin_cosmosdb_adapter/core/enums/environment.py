"""Runtime environment types.

Used by Settings and the logger composition root to pick environment-specific
behavior.

Environments:
- DEVELOPMENT: Local development, human-readable colored logs
- TESTING: Automated test execution, JSON logs
- CI: Continuous integration, JSON logs
- PRODUCTION: Deployed alongside an enforcer, JSON logs
"""

from enum import Enum


class Environment(str, Enum):
    """Runtime environment types."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    CI = "ci"
    PRODUCTION = "production"
