# src/capshare/plugins/schema.py
"""Compile a plugin's config field descriptors into a validator.

The compiled schema validates a stored config record and injects declared
defaults into it, the way the persisted config is expected to look before
an export runs:

    schema = compile_schema({"quality": {"title": "Quality", "default": 75}})
    schema.defaults            # {"quality": 75}
    record = {}
    schema.validate(record)    # [] and record == {"quality": 75}
"""

from __future__ import annotations

import copy
import dataclasses
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import TypeAdapter, ValidationError

from capshare.plugins.errors import ConfigIssue, SchemaDeclarationError
from capshare.plugins.fields import FieldDescriptor, coerce_field


@dataclass(frozen=True)
class CompiledSchema:
    """Immutable result of compile_schema().

    Attributes:
        properties: Field name -> descriptor, with `required` stripped
        required: Names of required fields, in declaration order
    """

    properties: Mapping[str, FieldDescriptor]
    required: tuple[str, ...]
    _adapters: Mapping[str, TypeAdapter[Any]] = dataclasses.field(repr=False)
    _defaults: Mapping[str, Any] = dataclasses.field(repr=False)

    @property
    def defaults(self) -> dict[str, Any]:
        """Values seeded into a fresh config record.

        A new deep copy on every access.
        """
        return copy.deepcopy(dict(self._defaults))

    def validate(self, record: MutableMapping[str, Any]) -> list[ConfigIssue]:
        """Validate a config record, injecting missing defaults into it.

        Args:
            record: Config values; modified in place with default values
                for every declared field that is absent.

        Returns:
            Missing required fields first, then invalid values, each group
            in field declaration order; empty when the record is valid.
        """
        _inject_defaults(record, self.properties)

        issues: list[ConfigIssue] = []
        for name in self.required:
            if name not in record:
                issues.append(ConfigIssue(path=name, message="is required"))

        for name, adapter in self._adapters.items():
            if name not in record:
                continue
            issues.extend(_check_value(name, adapter, record[name]))

        return issues

    def is_valid(self, record: MutableMapping[str, Any]) -> bool:
        return not self.validate(record)

    def json_schema(self) -> dict[str, Any]:
        """Render as a JSON-schema object declaration."""
        return {
            "type": "object",
            "properties": {
                name: descriptor.json_schema()
                for name, descriptor in self.properties.items()
            },
            "required": list(self.required),
        }


def _inject_defaults(
    record: MutableMapping[str, Any], properties: Mapping[str, FieldDescriptor]
) -> None:
    for name, descriptor in properties.items():
        if name not in record and descriptor.has_default:
            record[name] = copy.deepcopy(descriptor.default)


def _check_value(name: str, adapter: TypeAdapter[Any], value: Any) -> list[ConfigIssue]:
    try:
        adapter.validate_python(value)
    except ValidationError as e:
        issues = []
        for error in e.errors():
            path = ".".join([name, *(str(part) for part in error["loc"])])
            issues.append(ConfigIssue(path=path, message=_lower_first(error["msg"])))
        return issues
    return []


def _lower_first(message: str) -> str:
    # "Input should be ..." reads as "Config `x` input should be ..."
    return message[:1].lower() + message[1:]


def compile_schema(
    fields: Mapping[str, FieldDescriptor | Mapping[str, Any]],
) -> CompiledSchema:
    """Compile field descriptors into a CompiledSchema.

    Args:
        fields: Field name -> typed descriptor or declarative mapping

    Returns:
        The compiled schema, including its defaults

    Raises:
        SchemaDeclarationError: If a descriptor has no title, is otherwise
            malformed, or declares a default its own constraints reject
    """
    properties: dict[str, FieldDescriptor] = {}
    required: list[str] = []
    adapters: dict[str, TypeAdapter[Any]] = {}

    for name, declaration in fields.items():
        descriptor = coerce_field(name, declaration)
        problem = descriptor.declaration_problem()
        if problem is not None:
            raise SchemaDeclarationError(name, problem)

        if descriptor.required is True:
            required.append(name)
            descriptor = dataclasses.replace(descriptor, required=False)

        adapter = descriptor.build_adapter()
        if descriptor.has_default:
            rejected = _check_value(name, adapter, descriptor.default)
            if rejected:
                raise SchemaDeclarationError(
                    name, f"has a default that fails validation: {rejected[0].message}"
                )

        properties[name] = descriptor
        adapters[name] = adapter

    defaults: dict[str, Any] = {}
    _inject_defaults(defaults, properties)

    return CompiledSchema(
        properties=MappingProxyType(properties),
        required=tuple(required),
        _adapters=MappingProxyType(adapters),
        _defaults=MappingProxyType(defaults),
    )
