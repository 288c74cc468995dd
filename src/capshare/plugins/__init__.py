"""Share-service plugin system.

This module provides the plugin contract and runtime:

- Fields: Typed config field descriptors
- Schema: Compiles descriptors into a validator with defaults
- Context: ExportContext passed to every action
- Service: PluginDefinition and the ShareService run lifecycle
- Manager: Plugin discovery and registration
- Hookspecs: pluggy hook definitions
- Errors: Registration and run-time error types
"""

# Context
from capshare.plugins.context import ExportContext

# Errors
from capshare.plugins.errors import (
    ActionError,
    ConfigIssue,
    ConfigStoreError,
    ConfigValidationError,
    InvalidDefinitionError,
    MissingKeyError,
    SchemaDeclarationError,
    ShareServiceError,
)

# Fields
from capshare.plugins.fields import (
    MISSING,
    AnyField,
    BooleanField,
    EnumField,
    FieldDescriptor,
    FieldKind,
    NumberField,
    StringField,
    field_from_mapping,
)

# Hookspecs
from capshare.plugins.hookspecs import hookimpl, hookspec

# Manager
from capshare.plugins.manager import ShareServiceManager

# Schema
from capshare.plugins.schema import CompiledSchema, compile_schema

# Service
from capshare.plugins.service import REQUIRED_KEYS, PluginDefinition, ShareService

__all__ = [
    "MISSING",
    "REQUIRED_KEYS",
    "ActionError",
    "AnyField",
    "BooleanField",
    "CompiledSchema",
    "ConfigIssue",
    "ConfigStoreError",
    "ConfigValidationError",
    "EnumField",
    "ExportContext",
    "FieldDescriptor",
    "FieldKind",
    "InvalidDefinitionError",
    "MissingKeyError",
    "NumberField",
    "PluginDefinition",
    "SchemaDeclarationError",
    "ShareService",
    "ShareServiceError",
    "ShareServiceManager",
    "StringField",
    "compile_schema",
    "field_from_mapping",
    "hookimpl",
    "hookspec",
]
