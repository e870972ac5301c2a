"""Central versioning and schema constants for the crawler."""

__all__ = ["__version__", "CONFIG_SCHEMA_VERSION"]

#: Semantic version of this codebase (bump using SemVer).
__version__ = "0.2.0"

#: Configuration schema version. Schema 1 is the legacy camelCase layout
#: (``domainsConfig`` / ``maxScrollAttempts`` ...), upgraded by ``migrate_config``.
CONFIG_SCHEMA_VERSION = 2
