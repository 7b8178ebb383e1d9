from pydantic import BaseModel, ValidationInfo, field_validator


class NullAsDefaultModel(BaseModel):
    """
    Base for wire models that must decode partial payloads.

    An explicit JSON ``null`` in a field that has a default decodes to that
    default, the same as if the key were absent.  Required fields still
    reject ``null``.
    """

    @field_validator("*", mode="before")
    @classmethod
    def _null_to_default(cls, value, info: ValidationInfo):
        if value is None and info.field_name is not None:
            field = cls.model_fields[info.field_name]
            if not field.is_required():
                return field.get_default(call_default_factory=True)
        return value
