from .records import (
    RecordKind,
    RecordRef,
    RecordMeta,
    Severity,
    Created,
    Conflict,
    Updated,
    PartialTagUpdate,
    Deleted,
    NotFound,
    StoreError,
    ValidationFailed,
    NotAuthorized,
    TransientUnavailable,
)
from .tags import TagUtils
from .stores import SecretsManagerStore, ParameterStore
from .coordinator import UpsertCoordinator, RecordListing
from .logger import ScriptLogger, ConsoleAndLog, Log
from .settings import SettingsLoader
from .tools import Strings, Colorize
from .aws_session import AWSSessionManager, TokenRetrievalError

__all__ = [
    'RecordKind',
    'RecordRef',
    'RecordMeta',
    'Severity',
    'Created',
    'Conflict',
    'Updated',
    'PartialTagUpdate',
    'Deleted',
    'NotFound',
    'StoreError',
    'ValidationFailed',
    'NotAuthorized',
    'TransientUnavailable',
    'TagUtils',
    'SecretsManagerStore',
    'ParameterStore',
    'UpsertCoordinator',
    'RecordListing',
    'ScriptLogger',
    'ConsoleAndLog',
    'Log',
    'SettingsLoader',
    'Strings',
    'Colorize',
    'AWSSessionManager',
    'TokenRetrievalError',
]
