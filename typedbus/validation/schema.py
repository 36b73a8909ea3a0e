"""
Event schema: a closed tagged union of pydantic event models.

The validation engine is pydantic; this module only builds the discriminated union,
keeps the discriminant -> variant mapping and translates errors into flat issues.
"""

from __future__ import annotations

import typing
from typing import Annotated, Any, Iterable, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from typedbus.errors.errors import EventValidationError, SchemaDefinitionError
from typedbus.types.aliases import Discriminant, Issue
from typedbus.types.types import ValidationResult


def validation_error_parser(error: ValidationError) -> list[Issue]:
    parsed_error = [
        {
            "path": ".".join(map(str, err["loc"])),
            "message": err["msg"],
            "error_type": err["type"],
        }
        for err in error.errors()
    ]
    return parsed_error


def literal_discriminant(model: type[BaseModel], discriminator: str) -> Discriminant:
    """Read the single string literal a variant declares for the discriminant field."""
    name = getattr(model, "__name__", repr(model))
    field_info = model.model_fields.get(discriminator)
    if field_info is None:
        raise SchemaDefinitionError(
            f"Variant {name} has no discriminant field {discriminator!r}", variant=name
        )
    annotation = field_info.annotation
    args = typing.get_args(annotation)
    if typing.get_origin(annotation) is not typing.Literal or len(args) != 1:
        raise SchemaDefinitionError(
            f"Variant {name}: field {discriminator!r} must be a single Literal, got {annotation!r}",
            variant=name,
        )
    value = args[0]
    if not isinstance(value, str):
        raise SchemaDefinitionError(
            f"Variant {name}: discriminant must be a string, got {value!r}", variant=name
        )
    return value


class EventSchema:
    """
    Closed declaration of all valid event variants.

    Usage:
        schema = EventSchema(Click, Hover)
        result = schema.validate({"type": "CLICK", "x": 10, "y": 20})
        if result.ok:
            event = result.value  # Click(type='CLICK', x=10, y=20)
    """

    def __init__(self, *variants: type[BaseModel], discriminator: str = "type") -> None:
        if not variants:
            raise SchemaDefinitionError("EventSchema needs at least one variant")

        by_tag: dict[Discriminant, type[BaseModel]] = {}
        for model in variants:
            if not (isinstance(model, type) and issubclass(model, BaseModel)):
                raise SchemaDefinitionError(
                    f"Variant {model!r} is not a pydantic model", variant=repr(model)
                )
            if model.model_config.get("extra") != "forbid":
                raise SchemaDefinitionError(
                    f"Variant {model.__name__} must forbid extra fields (subclass Event)",
                    variant=model.__name__,
                )
            tag = literal_discriminant(model, discriminator)
            if tag in by_tag:
                raise SchemaDefinitionError(
                    f"Discriminant {tag!r} declared by both {by_tag[tag].__name__} "
                    f"and {model.__name__}",
                    variant=model.__name__,
                    details={"discriminant": tag},
                )
            by_tag[tag] = model

        self._discriminator = discriminator
        self._by_tag = by_tag
        self._variants = tuple(variants)

        # A discriminator needs a union; a single variant validates as itself.
        if len(variants) == 1:
            target: Any = variants[0]
        else:
            target = Annotated[Union[self._variants], Field(discriminator=discriminator)]
        self._adapter: TypeAdapter[Any] = TypeAdapter(target)

    # --- introspection ---

    @property
    def discriminator(self) -> str:
        return self._discriminator

    @property
    def discriminants(self) -> frozenset[Discriminant]:
        return frozenset(self._by_tag)

    @property
    def variants(self) -> tuple[type[BaseModel], ...]:
        return self._variants

    def variant_for(self, discriminant: Discriminant) -> Optional[type[BaseModel]]:
        """Map a discriminant to its variant model; None if the schema does not declare it."""
        return self._by_tag.get(discriminant)

    def discriminant_of(self, event: Any) -> Optional[Discriminant]:
        if isinstance(event, BaseModel):
            return getattr(event, self._discriminator, None)
        if isinstance(event, dict):
            return event.get(self._discriminator)
        return None

    # --- validation ---

    def validate(self, candidate: Any) -> ValidationResult:
        """Validate without raising; failures carry the pydantic error and parsed issues."""
        try:
            value = self._adapter.validate_python(candidate)
        except ValidationError as exc:
            return ValidationResult.failure(exc, validation_error_parser(exc))
        return ValidationResult.success(value)

    def parse(self, candidate: Any) -> Any:
        result = self.validate(candidate)
        if not result.ok:
            raise EventValidationError(
                f"Candidate does not match any {self!r} variant",
                issues=result.issues,
                component="schema",
            )
        return result.value

    def __contains__(self, discriminant: object) -> bool:
        return discriminant in self._by_tag

    def __repr__(self) -> str:
        names = ", ".join(m.__name__ for m in self._variants)
        return f"EventSchema({names})"


def event_schema(*variants: type[BaseModel], discriminator: str = "type") -> EventSchema:
    return EventSchema(*variants, discriminator=discriminator)


def as_schema(schema: EventSchema | type[BaseModel] | Iterable[type[BaseModel]]) -> EventSchema:
    """Accept a schema, a single variant, or an iterable of variants."""
    if isinstance(schema, EventSchema):
        return schema
    if isinstance(schema, type):
        return EventSchema(schema)
    return EventSchema(*schema)
