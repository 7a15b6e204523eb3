"""Library vertical configuration.

Builds the LendingConfig from the environment so deployments can tune
thresholds without code changes (e.g. LIBRARY_MAX_LOANS_PER_DAY=6).
"""

from patterns.domain_config import LendingConfig

# Configuration instance read once at import
config = LendingConfig.from_env()
