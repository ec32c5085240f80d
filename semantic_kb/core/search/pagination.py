"""
Cursor pagination tokens.

A cursor records the last result a client has seen (its id and score,
plus an optional timestamp) and is handed out as URL-safe base64 of its
JSON form. Decoding anything else raises InvalidCursorError.

Dependencies: pydantic, base64 (stdlib)
System role: Opaque resume tokens for deep search result pages
"""

import base64
import binascii
from datetime import datetime

from pydantic import BaseModel, ValidationError as PydanticValidationError

from semantic_kb.core.exceptions import InvalidCursorError


class PaginationCursor(BaseModel):
    """Position of the last result delivered to a client."""

    last_id: str
    last_similarity: float | None = None
    last_timestamp: datetime | None = None
    forward: bool = True

    def encode(self) -> str:
        """Serialize to an opaque URL-safe token."""
        raw = self.model_dump_json(exclude_none=True).encode("utf-8")
        return base64.urlsafe_b64encode(raw).decode("ascii")

    @classmethod
    def decode(cls, token: str) -> "PaginationCursor":
        """
        Parse a token produced by ``encode``.

        Raises:
            InvalidCursorError: Token is not valid base64 JSON of a cursor
        """
        if not token or not token.strip():
            raise InvalidCursorError("empty token")
        try:
            raw = base64.urlsafe_b64decode(token.strip().encode("ascii"))
        except (binascii.Error, ValueError) as e:
            raise InvalidCursorError("not base64") from e
        try:
            return cls.model_validate_json(raw)
        except PydanticValidationError as e:
            raise InvalidCursorError("malformed payload") from e
