"""
SMALLINT-backed enumerations.

The database stores the integer code; the API returns the lower-case label
and accepts either form on input.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Annotated, Any

from pydantic import BeforeValidator, PlainSerializer


class LabeledEnum(IntEnum):
    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: Any) -> LabeledEnum:
        """
        Accept a member, an integer code, a numeric string or a label.

        Raises ValueError for anything else.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Invalid {cls.__name__}: {value!r}")
        if isinstance(value, int):
            return cls(value)
        if isinstance(value, str):
            raw = value.strip().lower()
            if raw.lstrip("-").isdigit():
                return cls(int(raw))
            for member in cls:
                if member.label == raw:
                    return member
        raise ValueError(f"Invalid {cls.__name__}: {value!r}")

    @classmethod
    def parse_or_none(cls, value: Any) -> LabeledEnum | None:
        """Lenient variant for query-string filters: bad input means no filter."""
        if value is None or value == "":
            return None
        try:
            return cls.parse(value)
        except ValueError:
            return None


class PostStatus(LabeledEnum):
    DRAFT = 1
    PUBLISHED = 2
    ARCHIVED = 3


class ContactStatus(LabeledEnum):
    NEW = 1
    READ = 2
    REPLIED = 3
    ARCHIVED = 4


class FileType(LabeledEnum):
    IMAGE = 1
    VIDEO = 2
    DOCUMENT = 3


class MediaRole(LabeledEnum):
    FEATURED = 1
    GALLERY = 2
    CONTENT = 3


class UserRole(LabeledEnum):
    USER = 1
    EDITOR = 2
    ADMIN = 3


def _label(value: LabeledEnum) -> str:
    return value.label


def labeled(enum_cls: type[LabeledEnum]) -> Any:
    """Pydantic field type: parse codes or labels, serialize to the label in JSON."""
    return Annotated[
        enum_cls,
        BeforeValidator(enum_cls.parse),
        PlainSerializer(_label, return_type=str, when_used="json"),
    ]


PostStatusField = labeled(PostStatus)
ContactStatusField = labeled(ContactStatus)
FileTypeField = labeled(FileType)
MediaRoleField = labeled(MediaRole)
UserRoleField = labeled(UserRole)
