"""Library vertical: loan eligibility for a lending library.

Brings the patterns together in one domain:
- Dataclass entities with identity semantics
- Pydantic structural validation
- Pure-function eligibility rules evaluated in a fixed order
- Frozen-dataclass thresholds with role scaling
- In-memory and SQLAlchemy loan stores
"""
