#!/usr/bin/env python3

VERSION = "v0.1.0/2026-10-19"

"""
Store gateways for AWS Secrets Manager and SSM Parameter Store.

Each gateway exposes the same six primitives over a boto3 client:

    create_record(name, value, tags, description) -> Created | Conflict
    update_value(name, value)                     -> RecordRef | None
    merge_tags(name, tags)                        -> bool
    describe_record(name)                         -> RecordMeta | None
    delete_record(name, force)                    -> RecordRef | None
    list_records(tag_filter)                      -> Iterator[RecordRef]

None / False mean the record does not exist. Provider errors are translated
into the StoreError hierarchy of secretops.records; a name conflict on create is a
Conflict value, not an exception.

Usage:
from secretops.stores import SecretsManagerStore, ParameterStore

secrets = SecretsManagerStore(session_manager.get_client('secretsmanager'))
outcome = secrets.create_record("prod/aws/secret-key", "abc123", {"CreatedBy": "alice"})
"""

import logging
from typing import Any, Dict, Iterator, Mapping, Optional

from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    NoRegionError,
    ParamValidationError,
    PartialCredentialsError,
    ReadTimeoutError,
)
from botocore.exceptions import ConnectionError as BotoConnectionError
from botocore.exceptions import TokenRetrievalError as BotoTokenRetrievalError

from secretops.records import (
    Conflict,
    Created,
    CreateOutcome,
    NotAuthorized,
    RecordKind,
    RecordMeta,
    RecordRef,
    RecordValue,
    StoreError,
    TransientUnavailable,
    ValidationFailed,
)
from secretops.tags import TagUtils

logger = logging.getLogger(__name__)

AUTH_ERROR_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "UnauthorizedException",
    "UnauthorizedOperation",
    "UnrecognizedClientException",
    "InvalidClientTokenId",
    "InvalidSignatureException",
    "SignatureDoesNotMatch",
    "ExpiredToken",
    "ExpiredTokenException",
    "MissingAuthenticationToken",
    "KMSAccessDeniedException",
}

VALIDATION_ERROR_CODES = {
    "ValidationException",
    "InvalidParameterException",
    "InvalidParameterValue",
    "InvalidRequestException",
    "MalformedPolicyDocumentException",
    "EncryptionFailure",
    "LimitExceededException",
    "TooManyTagsException",
    "InvalidResourceType",
    "InvalidKeyId",
    "InvalidAllowedPatternException",
    "ParameterPatternMismatchException",
    "ParameterMaxVersionLimitExceeded",
    "ParameterLimitExceeded",
    "HierarchyLevelLimitExceededException",
    "HierarchyTypeMismatchException",
    "UnsupportedParameterType",
    "PoliciesLimitExceededException",
    "InvalidPolicyTypeException",
    "InvalidPolicyAttributeException",
    "IncompatiblePolicyException",
}

TRANSIENT_ERROR_CODES = {
    "Throttling",
    "ThrottlingException",
    "TooManyRequestsException",
    "TooManyUpdates",
    "RequestLimitExceeded",
    "InternalServiceError",
    "InternalServerError",
    "InternalFailure",
    "ServiceUnavailable",
    "ServiceUnavailableException",
    "RequestTimeout",
    "RequestTimeoutException",
}

# Distinguishes "the store said no such record" from a real response
_MISSING = object()
_CONFLICT = object()


def error_code(e: ClientError) -> str:
    return e.response.get("Error", {}).get("Code", "")


def translate_client_error(e: ClientError, operation: str, name: str) -> StoreError:
    """Map a botocore ClientError to the matching StoreError subclass

    Args:
        e (ClientError): Error raised by the boto3 client
        operation (str): API operation that failed (e.g. 'create_secret')
        name (str): Record name the operation was acting on

    Returns:
        StoreError: ValidationFailed, NotAuthorized, TransientUnavailable,
            or a plain StoreError for codes not in any known group
    """
    code = error_code(e)
    message = e.response.get("Error", {}).get("Message", str(e))
    kwargs = {"provider_code": code, "provider_message": message, "operation": operation}

    if code in AUTH_ERROR_CODES:
        return NotAuthorized(f"Not authorized to {operation} '{name}'", **kwargs)
    if code in VALIDATION_ERROR_CODES:
        return ValidationFailed(f"Store rejected {operation} for '{name}'", **kwargs)
    if code in TRANSIENT_ERROR_CODES:
        return TransientUnavailable(f"Store unavailable during {operation} for '{name}'", **kwargs)
    return StoreError(f"Unexpected error during {operation} for '{name}'", **kwargs)


def translate_botocore_error(e: BotoCoreError, operation: str, name: str) -> StoreError:
    """Map a client-side botocore failure (credentials, network, timeouts) to a StoreError"""
    kwargs = {"provider_code": type(e).__name__, "provider_message": str(e), "operation": operation}

    if isinstance(e, (NoCredentialsError, PartialCredentialsError, BotoTokenRetrievalError)):
        return NotAuthorized(f"No usable AWS credentials for {operation} '{name}'", **kwargs)
    if isinstance(e, (ConnectTimeoutError, ReadTimeoutError)):
        return TransientUnavailable(f"Timed out during {operation} for '{name}'", **kwargs)
    if isinstance(e, (EndpointConnectionError, BotoConnectionError)):
        return TransientUnavailable(f"Could not reach the store during {operation} for '{name}'", **kwargs)
    if isinstance(e, (ParamValidationError, NoRegionError)):
        return ValidationFailed(f"Invalid request for {operation} '{name}'", **kwargs)
    return StoreError(f"Unexpected error during {operation} for '{name}'", **kwargs)


class RecordStore:
    """Shared plumbing for the gateways. Subclasses set kind and error codes."""

    kind: RecordKind = None
    NOT_FOUND_CODES = set()
    CONFLICT_CODES = set()

    def __init__(self, client: Any):
        self.client = client

    def _invoke(self, operation: str, name: str, *, missing_ok: bool = False,
                conflict_ok: bool = False, **kwargs) -> Any:
        """Call a client operation and translate failures

        Returns the response, or the _MISSING / _CONFLICT sentinels when the
        caller opted in to treating those codes as values.
        """
        logger.debug(f"{operation} {name}")
        try:
            return getattr(self.client, operation)(**kwargs)
        except ClientError as e:
            code = error_code(e)
            if missing_ok and code in self.NOT_FOUND_CODES:
                return _MISSING
            if conflict_ok and code in self.CONFLICT_CODES:
                return _CONFLICT
            raise translate_client_error(e, operation, name) from e
        except BotoCoreError as e:
            raise translate_botocore_error(e, operation, name) from e

    def _ref(self, name: str, arn: Optional[str] = None) -> RecordRef:
        return RecordRef(name=name, kind=self.kind, arn=arn)

    @staticmethod
    def _matches(tags: Mapping[str, str], tag_filter: Mapping[str, str]) -> bool:
        return all(tags.get(key) == value for key, value in tag_filter.items())


# =============================================================================
# ----- SECRETS MANAGER -------------------------------------------------------
# =============================================================================

class SecretsManagerStore(RecordStore):

    kind = RecordKind.SECRET
    NOT_FOUND_CODES = {"ResourceNotFoundException"}
    CONFLICT_CODES = {"ResourceExistsException"}

    def __init__(self, client: Any, kms_key_id: Optional[str] = None, recovery_window_days: int = 30):
        super().__init__(client)
        self.kms_key_id = kms_key_id
        self.recovery_window_days = recovery_window_days

    @staticmethod
    def _value_args(value: RecordValue) -> Dict[str, Any]:
        if isinstance(value, bytes):
            return {"SecretBinary": value}
        return {"SecretString": value}

    def create_record(self, name: str, value: RecordValue, tags: Mapping[str, str],
                      description: Optional[str] = None) -> CreateOutcome:
        kwargs = {"Name": name, "Tags": TagUtils.to_aws(tags), **self._value_args(value)}
        if description:
            kwargs["Description"] = description
        if self.kms_key_id:
            kwargs["KmsKeyId"] = self.kms_key_id

        response = self._invoke("create_secret", name, conflict_ok=True, **kwargs)
        if response is _CONFLICT:
            return Conflict(name=name, kind=self.kind)
        return Created(self._ref(name, response.get("ARN")))

    def update_value(self, name: str, value: RecordValue) -> Optional[RecordRef]:
        response = self._invoke("put_secret_value", name, missing_ok=True,
                                SecretId=name, **self._value_args(value))
        if response is _MISSING:
            return None
        return self._ref(name, response.get("ARN"))

    def merge_tags(self, name: str, tags: Mapping[str, str]) -> bool:
        if not tags:
            return True
        response = self._invoke("tag_resource", name, missing_ok=True,
                                SecretId=name, Tags=TagUtils.to_aws(tags))
        return response is not _MISSING

    def describe_record(self, name: str) -> Optional[RecordMeta]:
        response = self._invoke("describe_secret", name, missing_ok=True, SecretId=name)
        if response is _MISSING:
            return None
        return RecordMeta(
            ref=self._ref(response.get("Name", name), response.get("ARN")),
            tags=TagUtils.from_aws(response.get("Tags", [])),
            last_modified=response.get("LastChangedDate"),
            description=response.get("Description"),
        )

    def delete_record(self, name: str, force: bool = True) -> Optional[RecordRef]:
        if force:
            kwargs = {"ForceDeleteWithoutRecovery": True}
        else:
            kwargs = {"RecoveryWindowInDays": self.recovery_window_days}
        response = self._invoke("delete_secret", name, missing_ok=True, SecretId=name, **kwargs)
        if response is _MISSING:
            return None
        return self._ref(name, response.get("ARN"))

    def list_records(self, tag_filter: Mapping[str, str]) -> Iterator[RecordRef]:
        """Lazily yield secrets carrying every tag in tag_filter

        The provider's tag-key and tag-value filters are not bound to each
        other, so every candidate is re-checked against its own tag pairs.
        """
        filters = []
        if tag_filter:
            filters.append({"Key": "tag-key", "Values": list(tag_filter.keys())})
            # a leading '!' negates a list_secrets filter value, so those are matched client-side only
            values = [value for value in tag_filter.values() if not value.startswith("!")]
            if values:
                filters.append({"Key": "tag-value", "Values": values})
        try:
            paginator = self.client.get_paginator("list_secrets")
            for page in paginator.paginate(Filters=filters):
                for secret in page.get("SecretList", []):
                    if self._matches(TagUtils.from_aws(secret.get("Tags", [])), tag_filter):
                        yield self._ref(secret["Name"], secret.get("ARN"))
        except ClientError as e:
            raise translate_client_error(e, "list_secrets", "*") from e
        except BotoCoreError as e:
            raise translate_botocore_error(e, "list_secrets", "*") from e


# =============================================================================
# ----- SSM PARAMETER STORE ---------------------------------------------------
# =============================================================================

class ParameterStore(RecordStore):

    kind = RecordKind.PARAMETER
    NOT_FOUND_CODES = {"ParameterNotFound", "InvalidResourceId"}
    CONFLICT_CODES = {"ParameterAlreadyExists"}
    VALID_TYPES = ["String", "SecureString"]

    def __init__(self, client: Any, parameter_type: str = "String", tier: str = "Standard",
                 kms_key_id: Optional[str] = None):
        super().__init__(client)
        if parameter_type not in self.VALID_TYPES:
            raise ValueError(f"Invalid parameter type. Must be one of {self.VALID_TYPES}")
        self.parameter_type = parameter_type
        self.tier = tier
        self.kms_key_id = kms_key_id

    def _text(self, name: str, value: RecordValue) -> str:
        if isinstance(value, bytes):
            raise ValidationFailed(f"Parameter values must be text, got binary data for '{name}'")
        return value

    def _metadata(self, name: str) -> Optional[Dict[str, Any]]:
        response = self._invoke(
            "describe_parameters", name,
            ParameterFilters=[{"Key": "Name", "Option": "Equals", "Values": [name]}],
        )
        parameters = response.get("Parameters", [])
        return parameters[0] if parameters else None

    def create_record(self, name: str, value: RecordValue, tags: Mapping[str, str],
                      description: Optional[str] = None) -> CreateOutcome:
        kwargs = {
            "Name": name,
            "Value": self._text(name, value),
            "Type": self.parameter_type,
            "Tier": self.tier,
            "Tags": TagUtils.to_aws(tags),
        }
        if description:
            kwargs["Description"] = description
        if self.parameter_type == "SecureString" and self.kms_key_id:
            kwargs["KeyId"] = self.kms_key_id

        response = self._invoke("put_parameter", name, conflict_ok=True, **kwargs)
        if response is _CONFLICT:
            return Conflict(name=name, kind=self.kind)
        return Created(self._ref(name))

    def update_value(self, name: str, value: RecordValue) -> Optional[RecordRef]:
        """Overwrite the value of an existing parameter

        A SecureString store upgrades a plain String parameter to SecureString;
        otherwise the parameter's current type is kept. SecureString values
        stay under their KMS key (the current one, else the configured one).

        put_parameter with Overwrite would silently create a missing
        parameter (without tags), so existence is checked first.
        """
        text = self._text(name, value)
        metadata = self._metadata(name)
        if metadata is None:
            return None

        if self.parameter_type == "SecureString":
            parameter_type = "SecureString"
        else:
            parameter_type = metadata.get("Type", self.parameter_type)
        kwargs = {"Name": name, "Value": text, "Type": parameter_type, "Overwrite": True}
        if parameter_type == "SecureString":
            key_id = metadata.get("KeyId") or self.kms_key_id
            if key_id:
                kwargs["KeyId"] = key_id

        self._invoke("put_parameter", name, **kwargs)
        return self._ref(name, metadata.get("ARN"))

    def merge_tags(self, name: str, tags: Mapping[str, str]) -> bool:
        if not tags:
            return True
        response = self._invoke("add_tags_to_resource", name, missing_ok=True,
                                ResourceType="Parameter", ResourceId=name, Tags=TagUtils.to_aws(tags))
        return response is not _MISSING

    def describe_record(self, name: str) -> Optional[RecordMeta]:
        metadata = self._metadata(name)
        if metadata is None:
            return None
        response = self._invoke("list_tags_for_resource", name, missing_ok=True,
                                ResourceType="Parameter", ResourceId=name)
        if response is _MISSING:
            return None
        return RecordMeta(
            ref=self._ref(metadata.get("Name", name), metadata.get("ARN")),
            tags=TagUtils.from_aws(response.get("TagList", [])),
            last_modified=metadata.get("LastModifiedDate"),
            description=metadata.get("Description"),
        )

    def delete_record(self, name: str, force: bool = True) -> Optional[RecordRef]:
        # Parameter Store has no recovery window; force is accepted for symmetry
        response = self._invoke("delete_parameter", name, missing_ok=True, Name=name)
        if response is _MISSING:
            return None
        return self._ref(name)

    def list_records(self, tag_filter: Mapping[str, str]) -> Iterator[RecordRef]:
        """Lazily yield parameters carrying every tag in tag_filter"""
        parameter_filters = [
            {"Key": f"tag:{key}", "Values": [value]} for key, value in tag_filter.items()
        ]
        try:
            paginator = self.client.get_paginator("describe_parameters")
            for page in paginator.paginate(ParameterFilters=parameter_filters):
                for parameter in page.get("Parameters", []):
                    yield self._ref(parameter["Name"], parameter.get("ARN"))
        except ClientError as e:
            raise translate_client_error(e, "describe_parameters", "*") from e
        except BotoCoreError as e:
            raise translate_botocore_error(e, "describe_parameters", "*") from e
