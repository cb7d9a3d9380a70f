"""Settings shared by every provider configuration."""

from pydantic import BaseModel, Field


class ProviderConfig(BaseModel):
    """Polling knobs common to all providers.

    Provider configurations extend this with their credentials and
    identifiers; validation happens when the configuration is built, before
    any request is made.
    """

    poll_timeout: float = Field(default=1800, gt=0)
    poll_interval: float = Field(default=10, gt=0)
    transport_retries: int = Field(default=3, ge=0)
    in_flight_attempts: int = Field(default=30, ge=1)
    in_flight_min_delay: float = Field(default=10, ge=0)
    in_flight_max_delay: float = Field(default=30, ge=0)
