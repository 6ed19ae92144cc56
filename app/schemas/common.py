"""Shared schema building blocks."""

from pydantic import BaseModel, ConfigDict, Field


class APIModel(BaseModel):
    """Base model for wire schemas.

    Python attributes are snake_case; the JSON keys clients already use
    (``publishYear``, ``createdAt``...) are declared as aliases. Both spellings
    are accepted on input; responses use the aliases.
    """

    model_config = ConfigDict(populate_by_name=True)


class MessageResponse(APIModel):
    """Plain acknowledgement."""

    message: str = Field(..., description="Human-readable outcome.")
