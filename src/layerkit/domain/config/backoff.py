"""Backoff configuration model."""

from pydantic import BaseModel, Field


class BackoffConfig(BaseModel):
    """Configuration for retrying failed requests.

    A max_delay below min_delay is accepted; every delay is then max_delay.

    Attributes:
        max_attempts: Attempt budget (0 or 1 = single attempt, no backoff)
        min_delay: Base delay in seconds, doubled per attempt
        max_delay: Upper bound for any single delay in seconds
    """

    max_attempts: int = Field(3, ge=0, le=20)
    min_delay: float = Field(0.1, ge=0.0)  # Allow 0 for tests
    max_delay: float = Field(5.0, ge=0.0)

    def to_policy(self):
        """Convert to the runtime BackoffPolicy used by the executor"""
        from layerkit.infrastructure.http_client import backoff_policy_from_dict

        return backoff_policy_from_dict(self.model_dump())
