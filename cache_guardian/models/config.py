"""
Guardian run configuration.

Validated with pydantic so that a bad threshold or an all-wildcard pattern
is rejected before any store call is made.
"""

from pydantic import BaseModel, Field, field_validator

GLOB_METACHARACTERS = set("*?[]\\")


class GuardianConfig(BaseModel):
    """Options for a single assess-and-evict run"""
    key_pattern: str = Field(
        default="cache:*",
        min_length=1,
        description="Glob selecting the evictable namespace",
        examples=["cache:*", "cache:notes:*"]
    )
    threshold_percent: float = Field(
        default=80.0,
        gt=0,
        le=100,
        description="Usage percentage above which a sweep is triggered"
    )
    batch_size: int = Field(
        default=100,
        ge=1,
        description="COUNT hint passed to each scan call"
    )
    dry_run: bool = Field(
        default=False,
        description="Scan and count matching keys without deleting them"
    )

    @field_validator('key_pattern')
    @classmethod
    def validate_pattern_has_namespace(cls, v: str) -> str:
        """Reject patterns that would match every namespace in the store"""
        v = v.strip()
        if not v or set(v) <= GLOB_METACHARACTERS:
            raise ValueError("key_pattern must name a namespace, not only wildcards")
        return v
