"""Email HTML compatibility scoring against the caniemail.com dataset."""

from ._version import __version__
from .database import FeatureDatabase, default_database
from .model import AuditResult, FeatureRecord, ValidationReport
from .tokenizer import list_features
from .validator import ignore_tokens, validate

__all__ = [
    "AuditResult",
    "FeatureDatabase",
    "FeatureRecord",
    "ValidationReport",
    "__version__",
    "default_database",
    "ignore_tokens",
    "list_features",
    "validate",
]
