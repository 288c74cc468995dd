# src/capshare/plugins/fields.py
"""Typed config field descriptors for share-service plugins.

Plugins describe each config value they need with one of the descriptor
variants below. The declarative mapping form used by most plugin packages
(``{"title": "Quality", "type": "number", "default": 75}``) is parsed into
the same variants by field_from_mapping().

Example:
    config = {
        "quality": NumberField("Quality", integer=True, minimum=1, maximum=100, default=75),
        "token": StringField("API token", required=True),
        "loop": {"title": "Loop", "type": "boolean", "default": True},
    }
"""

from __future__ import annotations

import copy
import dataclasses
import datetime
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from ipaddress import IPv4Address, IPv6Address
from typing import Annotated, Any, ClassVar, Literal

from pydantic import AfterValidator, AnyUrl, Field, TypeAdapter, ValidationError
from pydantic_core import PydanticCustomError

from capshare.plugins.errors import SchemaDeclarationError


class _Missing:
    """Sentinel for "no default declared" (None is a valid default)."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __deepcopy__(self, memo: dict[int, Any]) -> _Missing:
        return self


MISSING: Any = _Missing()


class FieldKind(str, Enum):
    """Kinds of config values a plugin can declare."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ENUM = "enum"
    ANY = "any"


# String formats understood by StringField(format=...)
_FORMAT_TYPES: dict[str, Any] = {
    "uri": AnyUrl,
    "ipv4": IPv4Address,
    "ipv6": IPv6Address,
    "date": datetime.date,
    "date-time": datetime.datetime,
}

SUPPORTED_FORMATS: frozenset[str] = frozenset(_FORMAT_TYPES)


def _format_validator(fmt: str) -> AfterValidator:
    adapter: TypeAdapter[Any] = TypeAdapter(_FORMAT_TYPES[fmt])

    def check_format(value: str) -> str:
        try:
            adapter.validate_python(value)
        except ValidationError:
            raise PydanticCustomError(
                "format", 'should match format "{format}"', {"format": fmt}
            ) from None
        return value

    return AfterValidator(check_format)


def _predicate_validator(check: Callable[[Any], bool]) -> AfterValidator:
    def run_check(value: Any) -> Any:
        try:
            accepted = check(value)
        except Exception as e:
            raise PydanticCustomError(
                "check_error",
                "could not be checked: {error}",
                {"error": f"{type(e).__name__}: {e}"},
            ) from e
        if not accepted:
            raise PydanticCustomError("check", "is not an accepted value")
        return value

    return AfterValidator(run_check)


@dataclass(frozen=True)
class FieldDescriptor:
    """Common part of every config field descriptor.

    Attributes:
        title: Label shown to the user (mandatory)
        required: Whether the field must be present in the stored config.
            Consumed by the schema compiler, never seen by validators.
        default: Value injected when the field is missing
        description: Longer help text
        check: Extra predicate the value must satisfy
    """

    kind: ClassVar[FieldKind] = FieldKind.ANY

    title: str
    required: bool = False
    default: Any = MISSING
    description: str = ""
    check: Callable[[Any], bool] | None = dataclasses.field(
        default=None, compare=False
    )

    @property
    def has_default(self) -> bool:
        return self.default is not MISSING

    def base_type(self) -> Any:
        return Any

    def constraints(self) -> dict[str, Any]:
        """Keyword arguments for pydantic.Field."""
        return {}

    def declaration_problem(self) -> str | None:
        """Describe why this descriptor cannot be compiled, if it cannot."""
        if not isinstance(self.title, str) or not self.title.strip():
            return "should have a `title`"
        return None

    def build_adapter(self) -> TypeAdapter[Any]:
        """Compile this descriptor into a strict pydantic validator."""
        metadata = self._field_metadata()
        metadata.extend(self._extra_validators())
        if self.check is not None:
            metadata.append(_predicate_validator(self.check))
        if not metadata:
            return TypeAdapter(self.base_type())
        return TypeAdapter(Annotated[(self.base_type(), *metadata)])  # type: ignore[misc]

    def _field_metadata(self) -> list[Any]:
        return [Field(strict=True, **self.constraints())]

    def _extra_validators(self) -> list[Any]:
        return []

    def json_schema(self) -> dict[str, Any]:
        """JSON-schema style rendering (without `required`)."""
        schema: dict[str, Any] = {"title": self.title}
        if self.kind is not FieldKind.ANY and self.kind is not FieldKind.ENUM:
            schema["type"] = self.kind.value
        if self.description:
            schema["description"] = self.description
        if self.has_default:
            schema["default"] = copy.deepcopy(self.default)
        return schema


@dataclass(frozen=True)
class AnyField(FieldDescriptor):
    """Accepts any value."""

    def _field_metadata(self) -> list[Any]:
        return []


@dataclass(frozen=True)
class StringField(FieldDescriptor):
    kind: ClassVar[FieldKind] = FieldKind.STRING

    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    format: str | None = None

    def base_type(self) -> Any:
        return str

    def constraints(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in (
                ("min_length", self.min_length),
                ("max_length", self.max_length),
                ("pattern", self.pattern),
            )
            if value is not None
        }

    def declaration_problem(self) -> str | None:
        problem = super().declaration_problem()
        if problem is None and self.format is not None and self.format not in _FORMAT_TYPES:
            problem = (
                f"has unsupported format `{self.format}` "
                f"(supported: {', '.join(sorted(_FORMAT_TYPES))})"
            )
        return problem

    def _extra_validators(self) -> list[Any]:
        if self.format is None:
            return []
        return [_format_validator(self.format)]

    def json_schema(self) -> dict[str, Any]:
        schema = super().json_schema()
        for key, value in (
            ("minLength", self.min_length),
            ("maxLength", self.max_length),
            ("pattern", self.pattern),
            ("format", self.format),
        ):
            if value is not None:
                schema[key] = value
        return schema


@dataclass(frozen=True)
class NumberField(FieldDescriptor):
    kind: ClassVar[FieldKind] = FieldKind.NUMBER

    integer: bool = False
    minimum: float | None = None
    maximum: float | None = None
    exclusive_minimum: float | None = None
    exclusive_maximum: float | None = None
    multiple_of: float | None = None

    def base_type(self) -> Any:
        return int if self.integer else float

    def constraints(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in (
                ("ge", self.minimum),
                ("le", self.maximum),
                ("gt", self.exclusive_minimum),
                ("lt", self.exclusive_maximum),
                ("multiple_of", self.multiple_of),
            )
            if value is not None
        }

    def declaration_problem(self) -> str | None:
        problem = super().declaration_problem()
        if (
            problem is None
            and self.minimum is not None
            and self.maximum is not None
            and self.minimum > self.maximum
        ):
            problem = f"has minimum {self.minimum} greater than maximum {self.maximum}"
        return problem

    def json_schema(self) -> dict[str, Any]:
        schema = super().json_schema()
        if self.integer:
            schema["type"] = "integer"
        for key, value in (
            ("minimum", self.minimum),
            ("maximum", self.maximum),
            ("exclusiveMinimum", self.exclusive_minimum),
            ("exclusiveMaximum", self.exclusive_maximum),
            ("multipleOf", self.multiple_of),
        ):
            if value is not None:
                schema[key] = value
        return schema


@dataclass(frozen=True)
class BooleanField(FieldDescriptor):
    kind: ClassVar[FieldKind] = FieldKind.BOOLEAN

    def base_type(self) -> Any:
        return bool


@dataclass(frozen=True)
class EnumField(FieldDescriptor):
    kind: ClassVar[FieldKind] = FieldKind.ENUM

    choices: tuple[Any, ...] = ()

    def base_type(self) -> Any:
        return Literal[self.choices]  # type: ignore[valid-type]

    def _field_metadata(self) -> list[Any]:
        # Literal validation is exact already
        return []

    def declaration_problem(self) -> str | None:
        problem = super().declaration_problem()
        if problem is None and not self.choices:
            problem = "should list at least one `enum` choice"
        return problem

    def json_schema(self) -> dict[str, Any]:
        schema = super().json_schema()
        schema["enum"] = list(self.choices)
        return schema


_TYPE_NAMES: dict[str, type[FieldDescriptor]] = {
    "string": StringField,
    "number": NumberField,
    "integer": NumberField,
    "boolean": BooleanField,
}

# camelCase keywords accepted in the declarative form
_KEYWORD_ALIASES: dict[str, str] = {
    "minLength": "min_length",
    "maxLength": "max_length",
    "exclusiveMinimum": "exclusive_minimum",
    "exclusiveMaximum": "exclusive_maximum",
    "multipleOf": "multiple_of",
}


def _infer_type(default: Any) -> str | None:
    if isinstance(default, bool):
        return "boolean"
    if isinstance(default, (int, float)):
        return "number"
    if isinstance(default, str):
        return "string"
    return None


def field_from_mapping(name: str, declaration: Mapping[str, Any]) -> FieldDescriptor:
    """Parse the declarative mapping form of a field descriptor.

    The mapping is copied; the caller's object is never modified.

    Args:
        name: Field name, used in error messages
        declaration: Mapping with at least a ``title`` key

    Returns:
        The matching typed descriptor

    Raises:
        SchemaDeclarationError: If the mapping has no title, names an
            unknown type, or uses keywords its type does not support
    """
    if not isinstance(declaration, Mapping):
        raise SchemaDeclarationError(
            name, f"should be a mapping, got {type(declaration).__name__}"
        )

    data = {_KEYWORD_ALIASES.get(key, key): value for key, value in declaration.items()}

    title = data.pop("title", None)
    if not title:
        raise SchemaDeclarationError(name, "should have a `title`")

    common: dict[str, Any] = {
        "title": title,
        # Only a literal True makes a field required
        "required": data.pop("required", False) is True,
        "description": data.pop("description", ""),
        "check": data.pop("check", None),
    }
    if "default" in data:
        common["default"] = copy.deepcopy(data.pop("default"))

    if "enum" in data:
        choices = data.pop("enum")
        data.pop("type", None)
        cls: type[FieldDescriptor] = EnumField
        data["choices"] = tuple(choices)
    else:
        type_name = data.pop("type", None) or _infer_type(common.get("default"))
        if type_name is None:
            cls = AnyField
        elif type_name in _TYPE_NAMES:
            cls = _TYPE_NAMES[type_name]
            if type_name == "integer":
                data["integer"] = True
        else:
            raise SchemaDeclarationError(name, f"has unknown type `{type_name}`")

    allowed = {f.name for f in dataclasses.fields(cls)}
    unsupported = sorted(set(data) - allowed)
    if unsupported:
        raise SchemaDeclarationError(
            name,
            f"uses keywords not supported for {cls.kind.value} fields: "
            f"{', '.join(unsupported)}",
        )

    return cls(**common, **data)


def coerce_field(name: str, declaration: FieldDescriptor | Mapping[str, Any]) -> FieldDescriptor:
    """Return a typed descriptor for either accepted declaration form."""
    if isinstance(declaration, FieldDescriptor):
        return declaration
    return field_from_mapping(name, declaration)
