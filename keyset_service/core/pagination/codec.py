"""Opaque keyset tokens.

A token carries the boundary keyset, the direction and optionally the
page size, so a client can follow "previous"/"next" links without
knowing the key columns.

Token format:
1. JSON object ``{"ks": {...}, "dir": "aft", "lmt": 20}``
2. Base64 URL-safe encoded for use in URLs
"""

from __future__ import annotations

import base64
import binascii
import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from keyset_service.core.database.exceptions import KeysetError
from keyset_service.core.pagination.direction import Direction


class KeysetToken(BaseModel):
    """Decoded keyset token.

    Attributes:
        keyset: Boundary values by column name
        direction: Traversal direction relative to the keyset
        limit: Page size the token was issued for, if any
    """

    model_config = ConfigDict(frozen=True)

    keyset: dict[str, Any] = Field(default_factory=dict, description="Boundary values")
    direction: Direction = Field(default=Direction.AFTER, description="Traversal direction")
    limit: int | None = Field(default=None, ge=1, description="Page size")

    @field_validator("direction", mode="before")
    @classmethod
    def parse_direction(cls, v: Any) -> Direction:
        try:
            return Direction.parse(v)
        except KeysetError as e:
            raise ValueError(e.message) from e


class KeysetCodec:
    """Encode and decode keyset tokens.

    Usage:
        token = KeysetCodec.encode(KeysetToken(keyset={"id": 11}))
        KeysetCodec.decode(token).keyset  # {"id": 11}
    """

    @staticmethod
    def encode(token: KeysetToken) -> str:
        """Encode a keyset token to an opaque string.

        Args:
            token: Keyset, direction and page size

        Returns:
            URL-safe base64 encoded string
        """
        payload: dict[str, Any] = {
            "ks": KeysetCodec._serialize_values(token.keyset),
            "dir": token.direction.value,
        }
        if token.limit is not None:
            payload["lmt"] = token.limit
        json_str = json.dumps(payload, separators=(",", ":"))
        return base64.urlsafe_b64encode(json_str.encode()).decode()

    @staticmethod
    def decode(value: str) -> KeysetToken:
        """Decode an opaque string to a keyset token.

        Raises:
            ValueError: If the token is invalid or corrupted
        """
        try:
            json_str = base64.urlsafe_b64decode(value.encode()).decode()
            payload = json.loads(json_str)
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
            msg = f"Invalid keyset token: {e}"
            raise ValueError(msg) from e

        if not isinstance(payload, dict):
            msg = "Invalid keyset token: expected an object"
            raise ValueError(msg)

        try:
            return KeysetToken(
                keyset=payload.get("ks") or {},
                direction=payload.get("dir", Direction.AFTER),
                limit=payload.get("lmt"),
            )
        except ValidationError as e:
            msg = f"Invalid keyset token: {e.errors()[0]['msg']}"
            raise ValueError(msg) from e

    @staticmethod
    def _serialize_values(values: dict[str, Any]) -> dict[str, Any]:
        """Serialize values to JSON-compatible format.

        Handles special types like datetime, Decimal and UUID.
        """
        result: dict[str, Any] = {}
        for key, value in values.items():
            if isinstance(value, (datetime, date)):
                result[key] = value.isoformat()
            elif isinstance(value, (UUID, Decimal)):
                result[key] = str(value)
            else:
                result[key] = value
        return result

    @staticmethod
    def create_token(
        row: Any,
        columns: list[str],
        direction: Direction | str = Direction.AFTER,
        limit: int | None = None,
    ) -> str:
        """Create a token from a row, mapping, or ORM instance.

        Example:
            token = KeysetCodec.create_token(last_row, ["id"])
        """
        if isinstance(row, dict):
            keyset = {name: row.get(name) for name in columns}
        elif hasattr(row, "_mapping"):
            keyset = {name: row._mapping.get(name) for name in columns}
        else:
            keyset = {name: getattr(row, name, None) for name in columns}
        return KeysetCodec.encode(
            KeysetToken(keyset=keyset, direction=Direction.parse(direction), limit=limit)
        )


__all__ = ["KeysetCodec", "KeysetToken"]
