#!/usr/bin/env python3

VERSION = "v0.1.0/2026-10-19"

"""
Tag helpers: provenance tags, AWS tag validation, and conversion between
plain dicts and the [{'Key': ..., 'Value': ...}] lists the AWS APIs use.
"""

import re
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Mapping, Tuple

CREATED_BY = "CreatedBy"
CREATED_AT = "CreatedAt"
DELETED_BY = "DeletedBy"
DELETED_AT = "DeletedAt"

PROVENANCE_KEYS = (CREATED_BY, CREATED_AT)
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TagUtils:

    # AWS allows Unicode letters, numbers, spaces, and the following special characters: + - = . _ : / @
    INVALID_CHAR = re.compile(r"[^\w .:/=+\-@]")

    @staticmethod
    def timestamp(clock: Clock) -> str:
        """Format the clock's current time as an ISO-8601 UTC timestamp

        Naive datetimes are taken to already be in UTC.
        """
        now = clock()
        if now.tzinfo is not None:
            now = now.astimezone(timezone.utc)
        return now.strftime(TIMESTAMP_FORMAT)

    @staticmethod
    def created_tags(actor: str, clock: Clock) -> Dict[str, str]:
        """Provenance tags attached when a record is created

        Args:
            actor (str): Identity recorded as the creator
            clock (Clock): Returns the current time

        Returns:
            Dict[str, str]: CreatedBy and CreatedAt tags
        """
        return {CREATED_BY: actor, CREATED_AT: TagUtils.timestamp(clock)}

    @staticmethod
    def deleted_tags(actor: str, clock: Clock) -> Dict[str, str]:
        """Audit tags attached right before a record is deleted"""
        return {DELETED_BY: actor, DELETED_AT: TagUtils.timestamp(clock)}

    @staticmethod
    def is_valid_aws_tag(key: str, value: str) -> Tuple[bool, str]:
        """Validate AWS tag key and value according to AWS requirements

        Returns:
            tuple[bool, str]: (is_valid, error_message)
        """
        if not isinstance(key, str) or not key.strip():
            return False, "Tag key cannot be empty"

        if not isinstance(value, str):
            return False, f"Tag value for '{key}' must be a string"

        if len(key) > 128:
            return False, "Tag key cannot be longer than 128 characters"

        if key.lower().startswith("aws:"):
            return False, "Tag keys cannot start with 'aws:'"

        if key.startswith(" ") or key.endswith(" "):
            return False, "Tag keys cannot start or end with spaces"

        invalid_chars = set(TagUtils.INVALID_CHAR.findall(key))
        if invalid_chars:
            return False, f"Tag key contains invalid characters: {', '.join(sorted(invalid_chars))}"

        if len(value) > 256:
            return False, "Tag value cannot be longer than 256 characters"

        if value.startswith(" ") or value.endswith(" "):
            return False, "Tag values cannot start or end with spaces"

        invalid_chars = set(TagUtils.INVALID_CHAR.findall(value))
        if invalid_chars:
            return False, f"Tag value contains invalid characters: {', '.join(sorted(invalid_chars))}"

        return True, ""

    @staticmethod
    def validate(tags: Mapping[str, str]) -> List[str]:
        """Return one error message per invalid tag (empty list when all are valid)"""
        errors = []
        for key, value in tags.items():
            is_valid, message = TagUtils.is_valid_aws_tag(key, value)
            if not is_valid:
                errors.append(message)
        return errors

    @staticmethod
    def to_aws(tags: Mapping[str, str]) -> List[Dict[str, str]]:
        """{'CreatedBy': 'alice'} -> [{'Key': 'CreatedBy', 'Value': 'alice'}]"""
        return [{"Key": key, "Value": value} for key, value in tags.items()]

    @staticmethod
    def from_aws(tag_list: Iterable[Mapping[str, str]]) -> Dict[str, str]:
        """[{'Key': 'CreatedBy', 'Value': 'alice'}] -> {'CreatedBy': 'alice'}"""
        return {tag["Key"]: tag.get("Value", "") for tag in tag_list or []}

    @staticmethod
    def missing_only(tags: Mapping[str, str], existing: Mapping[str, str],
                     preserve_keys: Iterable[str]) -> Dict[str, str]:
        """Drop preserved keys that the existing record already carries

        Args:
            tags (Mapping[str, str]): Tags the caller wants on the record
            existing (Mapping[str, str]): Tags currently on the record
            preserve_keys (Iterable[str]): Keys only written when absent

        Returns:
            Dict[str, str]: Tags to merge
        """
        preserve = set(preserve_keys)
        return {
            key: value for key, value in tags.items()
            if key not in preserve or key not in existing
        }
