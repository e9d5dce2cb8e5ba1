"""Data providers: paginated record access exported by user modules."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from appdom._errors import SchemaValidationError

DATA_PROVIDER_MARKER = "__appdom_data_provider__"

type PaginationMode = Literal["index", "cursor"]


@dataclass(frozen=True, slots=True)
class DataProvider:
    """A data provider built by ``create_data_provider``.

    Attributes:
        get_records: ``get_records(params)`` returning ``{"rows": [...], ...}``.
        create_record: Optional ``create_record(values)`` returning the new record.
        update_record: Optional ``update_record(record_id, values)`` returning the record.
        delete_record: Optional ``delete_record(record_id)``.
        pagination_mode: ``"index"`` (page number) or ``"cursor"``.

    """

    __appdom_data_provider__: ClassVar[bool] = True

    get_records: Callable[..., Any]
    create_record: Callable[..., Any] | None = None
    update_record: Callable[..., Any] | None = None
    delete_record: Callable[..., Any] | None = None
    pagination_mode: PaginationMode = "index"


def create_data_provider(
    *,
    get_records: Callable[..., Any],
    create_record: Callable[..., Any] | None = None,
    update_record: Callable[..., Any] | None = None,
    delete_record: Callable[..., Any] | None = None,
    pagination_mode: PaginationMode = "index",
) -> DataProvider:
    """Create a data provider to export from a function module.

    Example:
        >>> async def get_records(params):
        ...     return {"rows": [{"id": 1}]}
        >>> provider = create_data_provider(get_records=get_records)
        >>> provider.pagination_mode
        'index'

    """
    return DataProvider(
        get_records=get_records,
        create_record=create_record,
        update_record=update_record,
        delete_record=delete_record,
        pagination_mode=pagination_mode,
    )


def _alias(name: str, camel: str) -> AliasChoices:
    return AliasChoices(name, camel)


class DataProviderSchema(BaseModel):
    """Structural schema a data provider export must satisfy before any of its methods is called."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    get_records: Callable[..., Any] = Field(validation_alias=_alias("get_records", "getRecords"))
    create_record: Callable[..., Any] | None = Field(
        default=None,
        validation_alias=_alias("create_record", "createRecord"),
    )
    update_record: Callable[..., Any] | None = Field(
        default=None,
        validation_alias=_alias("update_record", "updateRecord"),
    )
    delete_record: Callable[..., Any] | None = Field(
        default=None,
        validation_alias=_alias("delete_record", "deleteRecord"),
    )
    pagination_mode: PaginationMode = Field(
        default="index",
        validation_alias=_alias("pagination_mode", "paginationMode"),
    )
    marker: Literal[True] = Field(validation_alias=DATA_PROVIDER_MARKER)


@dataclass(frozen=True, slots=True)
class DataProviderIntrospection:
    """Capabilities of a data provider, determined without calling it."""

    pagination_mode: PaginationMode
    has_delete_record: bool
    has_create_record: bool
    has_update_record: bool

    @classmethod
    def from_schema(cls, provider: DataProviderSchema) -> DataProviderIntrospection:
        return cls(
            pagination_mode=provider.pagination_mode,
            has_delete_record=provider.delete_record is not None,
            has_create_record=provider.create_record is not None,
            has_update_record=provider.update_record is not None,
        )


def validate_data_provider(value: Any, name: str) -> DataProviderSchema:
    """Check that ``value`` is a data provider.

    Mappings are validated by key, any other object by attribute.

    Raises:
        SchemaValidationError: Naming the offending field, e.g. ``get_records``
            when it is missing or not callable.

    """
    try:
        return DataProviderSchema.model_validate(value, from_attributes=not isinstance(value, Mapping))
    except ValidationError as e:
        raise SchemaValidationError.from_validation_error(f'data provider "{name}"', e) from e
