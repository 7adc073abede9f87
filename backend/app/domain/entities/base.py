"""
Modèle de base des entités TrainLog.

Les attributs Python sont en snake_case ; la forme document (celle que
consomme l'UI) est en camelCase via les alias.
"""
from typing import Any, Mapping, Type, TypeVar

from pydantic import ConfigDict, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel

from app.domain.errors import ValidationError

ModelT = TypeVar("ModelT", bound=SQLModel)


class TrainLogModel(SQLModel):
    """Base commune : alias camelCase, population par nom autorisée."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    def to_document(self) -> dict:
        """Sérialise en document camelCase (JSON-compatible)."""
        return self.model_dump(mode="json", by_alias=True)


def parse_model(model_cls: Type[ModelT], data: Any) -> ModelT:
    """Valide `data` en `model_cls` et convertit l'erreur pydantic en erreur du domaine."""
    if isinstance(data, model_cls):
        return data
    if isinstance(data, SQLModel):
        data = data.model_dump(exclude_unset=True)
    if not isinstance(data, Mapping):
        raise ValidationError(f"{model_cls.__name__}: expected a mapping, got {type(data).__name__}")
    try:
        return model_cls.model_validate(dict(data))
    except PydanticValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ValidationError(f"{model_cls.__name__}: invalid or missing fields ({fields})") from e
