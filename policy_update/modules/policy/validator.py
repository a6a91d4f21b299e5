"""
Strict validation of policy update requests.

Turns an untrusted request (content type, declared length, raw body) into a
fully populated Policy, or raises the ValidationFailure that names what is
wrong. Checks run in a fixed order and the first failure wins.
"""

import json
import logging
from typing import AsyncIterable, Dict, List, Optional

from pydantic import ValidationError

from ...errors import PayloadTooLarge, UnsupportedMediaType, ValidationFailure
from .models import FIELD_ALIASES, FIELD_WIRE_NAMES, MAX_ACTION, MIN_ACTION, Policy

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 1048576
JSON_MEDIA_TYPE = "application/json"


class _NonStandardConstant(ValueError):
    """NaN and Infinity are not JSON."""


def _reject_constant(name: str):
    raise _NonStandardConstant(name)


# Longer integer literals are out of range whatever their value, and are
# never handed to int() (which refuses strings over 4300 digits)
MAX_INT_DIGITS = 32


def _parse_int(literal: str) -> int:
    if len(literal.lstrip("-")) > MAX_INT_DIGITS:
        return MIN_ACTION - 1 if literal.startswith("-") else MAX_ACTION + 1
    return int(literal)


def media_type(content_type: str) -> str:
    """Media type of a Content-Type header value, without parameters."""
    return content_type.split(";", 1)[0].strip().lower()


async def read_limited_body(chunks: AsyncIterable[bytes], limit: int = MAX_BODY_BYTES) -> bytes:
    """
    Read a request body, giving up as soon as it exceeds the limit.

    Raises:
        PayloadTooLarge: If more than ``limit`` bytes arrive
    """
    body = bytearray()
    async for chunk in chunks:
        body.extend(chunk)
        if len(body) > limit:
            raise PayloadTooLarge()
    return bytes(body)


class PolicyValidator:
    """Validates a raw policy update request against the closed schema."""

    def __init__(self, max_body_bytes: int = MAX_BODY_BYTES):
        self.max_body_bytes = max_body_bytes

    def check_headers(self, content_length: Optional[int], content_type: Optional[str]) -> None:
        """Header-only checks, so a request can be refused before its body is read."""
        if content_type and media_type(content_type) != JSON_MEDIA_TYPE:
            raise UnsupportedMediaType()
        if content_length is not None and content_length > self.max_body_bytes:
            raise PayloadTooLarge()

    def validate(
        self,
        raw_body: bytes,
        content_length: Optional[int] = None,
        content_type: Optional[str] = None,
    ) -> Policy:
        """
        Validate a request.

        Args:
            raw_body: Request body as received
            content_length: Declared Content-Length, if any
            content_type: Content-Type header value, if any

        Returns:
            Fully populated, range-checked Policy

        Raises:
            UnsupportedMediaType: Content-Type present but not application/json
            PayloadTooLarge: Body over the size cap
            ValidationFailure: Any other problem, naming the field involved
        """
        self.check_headers(content_length, content_type)
        if len(raw_body) > self.max_body_bytes:
            raise PayloadTooLarge()

        data = self._parse_json(raw_body)
        if not isinstance(data, dict):
            raise ValidationFailure("Request body must be a JSON object")

        for key in data:
            if key not in FIELD_ALIASES:
                raise ValidationFailure(f'Request body contains unknown field "{key}"')

        return self._build_policy(data)

    @staticmethod
    def _parse_json(raw_body: bytes):
        if not raw_body.strip():
            raise ValidationFailure("Request body must not be empty")

        try:
            text = raw_body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationFailure(
                f"Request body contains badly-formed JSON (at position {e.start})"
            ) from None

        try:
            return json.loads(text, parse_constant=_reject_constant, parse_int=_parse_int)
        except _NonStandardConstant as e:
            raise ValidationFailure(
                f"Request body contains badly-formed JSON (invalid literal {e})"
            ) from None
        except json.JSONDecodeError as e:
            if e.pos >= len(text.rstrip()):
                raise ValidationFailure("Request body contains badly-formed JSON") from None
            raise ValidationFailure(
                f"Request body contains badly-formed JSON (at position {e.pos})"
            ) from None
        except RecursionError:
            raise ValidationFailure(
                "Request body contains badly-formed JSON (nested too deeply)"
            ) from None
        except ValueError as e:
            raise ValidationFailure(f"Request body contains badly-formed JSON ({e})") from None

    @staticmethod
    def _build_policy(data: Dict) -> Policy:
        try:
            return Policy.model_validate(data)
        except ValidationError as e:
            errors = e.errors()

        by_field: Dict[str, List[dict]] = {}
        for error in errors:
            loc = error["loc"][0] if error["loc"] else ""
            if error["type"] == "extra_forbidden":
                raise ValidationFailure(f'Request body contains unknown field "{loc}"')
            by_field.setdefault(FIELD_ALIASES.get(str(loc), str(loc)), []).append(error)

        for wire_name in FIELD_WIRE_NAMES.values():
            present = [alias for alias, name in FIELD_ALIASES.items() if name == wire_name and alias in data]
            if not present or data[present[0]] is None:
                raise ValidationFailure(f"{wire_name} is required.")

            for error in by_field.get(wire_name, []):
                if error["type"] in ("greater_than_equal", "less_than_equal"):
                    raise ValidationFailure(
                        f"{wire_name} must be between {MIN_ACTION}-{MAX_ACTION} inclusive."
                    )
                raise ValidationFailure(
                    f'Request body contains an invalid value for the "{wire_name}" field'
                )

        # Every pydantic error belongs to one of the two fields
        logger.error(f"Unmapped policy validation errors: {errors}")
        raise ValidationFailure("Request body is not a valid policy")
