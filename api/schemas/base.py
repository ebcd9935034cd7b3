from __future__ import annotations
from decimal import Decimal
from typing import Annotated, ClassVar

from pydantic import AfterValidator, BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both accepted on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PatchModel(CamelModel):
    """
    Partial update body.  Every field is optional, but fields listed in
    `nullable_fields` are the only ones that may be sent as explicit null.
    """

    nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_nulls(self):
        for name in self.model_fields_set:
            if getattr(self, name) is None and name not in self.nullable_fields:
                raise ValueError(f"{to_camel(name)} may not be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


def number_to_text(v):
    # clients sometimes send 300 instead of "300"
    if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool):
        return str(v)
    return v


def not_blank(v: str) -> str:
    # checked stripped, stored as sent: " rice" and "rice" stay different keys
    if not v.strip():
        raise ValueError("must not be empty")
    return v


NonEmpty = Annotated[str, AfterValidator(not_blank)]
