"""
Orthanc API Client — Wire Field Types.

Reusable annotated types shared by the Orthanc models: the compact
``YYYYMMDDTHHMMSS`` timestamp, the open DICOM tag map and the closed
set of entity kinds used in ``Type``/``Level`` fields.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any

from pydantic import AfterValidator, BeforeValidator, PlainSerializer

TIMESTAMP_FORMAT = "%Y%m%dT%H%M%S"

_TIMESTAMP_RE = re.compile(r"^\d{8}T\d{6}$")


class EntityKind(str, Enum):
    """Level of the DICOM hierarchy as labelled by Orthanc."""

    PATIENT = "Patient"
    STUDY = "Study"
    SERIES = "Series"
    INSTANCE = "Instance"

    @property
    def collection(self) -> str:
        """URL segment of the REST collection holding this kind."""
        return _COLLECTIONS[self]


_COLLECTIONS = {
    EntityKind.PATIENT: "patients",
    EntityKind.STUDY: "studies",
    EntityKind.SERIES: "series",
    EntityKind.INSTANCE: "instances",
}


def parse_timestamp(value: Any) -> datetime:
    """Parse an Orthanc ``LastUpdate`` style timestamp.

    Only the exact ``YYYYMMDDTHHMMSS`` form is accepted; ``strptime``
    alone would tolerate single-digit fields.

    Raises:
        ValueError: If *value* is not a string in that exact form.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not _TIMESTAMP_RE.match(value):
        raise ValueError(f"timestamp {value!r} does not match YYYYMMDDTHHMMSS")
    return datetime.strptime(value, TIMESTAMP_FORMAT)


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def _freeze_tags(tags: Mapping[str, str]) -> Mapping[str, str]:
    return MappingProxyType(dict(tags))


Timestamp = Annotated[
    datetime,
    BeforeValidator(parse_timestamp),
    PlainSerializer(format_timestamp, return_type=str),
]

# DICOM tag name -> value; keys are never checked against a dictionary.
TagMap = Annotated[
    Mapping[str, str],
    AfterValidator(_freeze_tags),
    PlainSerializer(dict, return_type=dict[str, str]),
]
