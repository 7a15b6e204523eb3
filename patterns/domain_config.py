"""Dataclass-based domain configuration pattern.

Each vertical defines its thresholds, limits, and feature flags as a
frozen dataclass. This gives you:
- Type safety (IDE autocompletion, mypy checking)
- Default values (sensible out-of-the-box)
- Immutability (frozen=True prevents accidental mutation)
- Easy overrides (from env vars, config files, or tenant settings)

Example domain: a lending library whose librarians work under relaxed
limits. Base thresholds live in ``LendingConfig``; the role-specific view
is derived by ``effective_thresholds``.
"""

import os
from dataclasses import dataclass, fields
from datetime import timedelta


# ---------------------------------------------------------------------------
# Base thresholds
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LendingConfig:
    """Base lending thresholds, before any role scaling.

    Usage::

        config = LendingConfig.default()
        limits = effective_thresholds(config, reader.is_librarian)
        if len(books) > limits.max_books_per_request:
            reject()
    """

    max_loans_per_period: int = 10      # NMC
    max_books_per_request: int = 5      # C
    max_books_per_topic: int = 3        # D
    max_loans_per_day: int = 4          # NCZ, ordinary readers
    max_extensions: int = 2             # LIM
    cooldown_days: int = 30             # DELTA
    period_days: int = 180              # PER
    topic_window_months: int = 6        # L
    librarian_daily_cap: int = 10       # PERSIMP

    # Catalog and availability
    max_topics_per_book: int = 3
    min_free_ratio: float = 0.10
    default_extension_days: int = 14

    def __post_init__(self):
        for f in fields(self):
            if getattr(self, f.name) < 0:
                raise ValueError(f"{f.name} must not be negative")

    @classmethod
    def default(cls) -> "LendingConfig":
        """Create config with all defaults."""
        return cls()

    @classmethod
    def from_env(cls, prefix: str = "LIBRARY_") -> "LendingConfig":
        """Create config from environment variables.

        Example: LIBRARY_MAX_LOANS_PER_DAY=6
        """
        overrides = {}
        for f in fields(cls):
            raw = os.getenv(f"{prefix}{f.name.upper()}")
            if raw:
                overrides[f.name] = float(raw) if f.type in (float, "float") else int(raw)

        return cls(**overrides)


# ---------------------------------------------------------------------------
# Role scaling
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EffectiveThresholds:
    """Thresholds as they apply to one reader."""

    daily_cap: int
    max_loans_per_period: int
    max_books_per_request: int
    max_books_per_topic: int
    max_extensions: int
    cooldown: timedelta
    period: timedelta
    topic_window_months: int


def effective_thresholds(config: LendingConfig, is_librarian: bool) -> EffectiveThresholds:
    """Scale base thresholds for the reader's role.

    Librarians get double the count limits and half the time spans. Their
    daily cap is not scaled but replaced by ``librarian_daily_cap``.
    """
    if not is_librarian:
        return EffectiveThresholds(
            daily_cap=config.max_loans_per_day,
            max_loans_per_period=config.max_loans_per_period,
            max_books_per_request=config.max_books_per_request,
            max_books_per_topic=config.max_books_per_topic,
            max_extensions=config.max_extensions,
            cooldown=timedelta(days=config.cooldown_days),
            period=timedelta(days=config.period_days),
            topic_window_months=config.topic_window_months,
        )

    return EffectiveThresholds(
        daily_cap=config.librarian_daily_cap,
        max_loans_per_period=config.max_loans_per_period * 2,
        max_books_per_request=config.max_books_per_request * 2,
        max_books_per_topic=config.max_books_per_topic * 2,
        max_extensions=config.max_extensions * 2,
        cooldown=timedelta(days=config.cooldown_days) / 2,
        period=timedelta(days=config.period_days) / 2,
        topic_window_months=config.topic_window_months,
    )
