"""Base model configuration for canonical records and collaborator payloads."""

from pydantic import BaseModel, ConfigDict


class Model(BaseModel):
    """Immutable model; surrounding whitespace in string fields is dropped."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)
