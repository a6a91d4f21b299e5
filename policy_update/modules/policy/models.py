"""
Policy data model.

The policy tells the reference API what to do with files the engine could
not rebuild. Each action is an integer in 1-4, e.g. 1 relays the file,
2 blocks it and 4 replaces it with a copy of the input body.
"""

import json
from typing import Dict

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt


MIN_ACTION = 1
MAX_ACTION = 4

# Wire name of each field, as named in client-facing messages
FIELD_WIRE_NAMES: Dict[str, str] = {
    "unprocessable_file_type_action": "unprocessableFileTypeAction",
    "glasswall_blocked_files_action": "glasswallBlockedFilesAction",
}

# Every accepted spelling of each field, mapped back to the wire name
FIELD_ALIASES: Dict[str, str] = {
    "unprocessableFileTypeAction": "unprocessableFileTypeAction",
    "UnprocessableFileTypeAction": "unprocessableFileTypeAction",
    "glasswallBlockedFilesAction": "glasswallBlockedFilesAction",
    "GlasswallBlockedFilesAction": "glasswallBlockedFilesAction",
}


class Policy(BaseModel):
    """Validated policy. Both fields are mandatory; nothing else is allowed."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    unprocessable_file_type_action: StrictInt = Field(
        ...,
        ge=MIN_ACTION,
        le=MAX_ACTION,
        validation_alias=AliasChoices("unprocessableFileTypeAction", "UnprocessableFileTypeAction"),
        serialization_alias="UnprocessableFileTypeAction",
        description="Action for files of an unsupported type",
    )
    glasswall_blocked_files_action: StrictInt = Field(
        ...,
        ge=MIN_ACTION,
        le=MAX_ACTION,
        validation_alias=AliasChoices("glasswallBlockedFilesAction", "GlasswallBlockedFilesAction"),
        serialization_alias="GlasswallBlockedFilesAction",
        description="Action for files the engine blocked",
    )

    def to_document(self) -> str:
        """Serialize to the compact JSON stored in the ConfigMap."""
        return json.dumps(self.model_dump(by_alias=True), separators=(",", ":"))
