"""Table descriptors: the declared shape of one table and its relationships."""

from typing import NamedTuple, Optional, Union

from pydantic import BaseModel, PrivateAttr, field_validator, model_validator

from .inflector import singular


class Relationship(NamedTuple):
    """Keys linking a holder table to a related table; empty strings are inferred at join time."""

    foreign_key: str = ""
    """Column of the holder table."""
    primary_key: str = ""
    """Column of the related table."""


class TableDescriptor(BaseModel):
    """Name, alias, columns and primary key of a table, plus its outgoing relationships.

    Everything but the relationships is frozen once declared.
    """

    model_config = {"frozen": True}

    name: str
    """Name of the table in the database."""
    alias: str = ""
    """Name used in queries; defaults to `name`. Also the key of the table in its model."""
    fields: tuple[str, ...]
    """Column names, in declaration order."""
    primary_key: str = ""
    """Primary key column; defaults to the first field."""

    _related: dict[str, Relationship] = PrivateAttr(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data):
        if isinstance(data, dict):
            data = dict(data)
            if not data.get("alias"):
                data["alias"] = data.get("name")
            fields = data.get("fields")
            if not data.get("primary_key") and fields:
                data["primary_key"] = list(fields)[0]
        return data

    @field_validator("fields")
    @classmethod
    def _check_fields(cls, fields: tuple[str, ...]) -> tuple[str, ...]:
        if not fields:
            raise ValueError("a table needs at least one field")
        duplicates = sorted({name for name in fields if fields.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate field name(s): {', '.join(duplicates)}")
        return fields

    @model_validator(mode="after")
    def _check_primary_key(self) -> "TableDescriptor":
        if self.primary_key not in self.fields:
            raise ValueError(
                f"primary key {self.primary_key!r} is not a field of {self.name!r}"
            )
        return self

    def __str__(self) -> str:
        return self.alias

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def relate(
        self,
        table: Optional[str] = None,
        keys: Optional[Union[Relationship, tuple[str, str]]] = None,
    ) -> Optional[dict[str, Relationship]]:
        """Set or get relationships.

        With no argument, return a copy of the mapping related table key ->
        Relationship. With a table key, store its (foreign_key, primary_key)
        pair; omitted or empty keys are inferred when joining.
        """
        if table is None:
            return dict(self._related)
        if keys is None:
            keys = ("", "")
        keys = tuple(keys)
        if len(keys) != 2:
            raise ValueError(f"relationship keys must be a (foreign_key, primary_key) pair, got {keys!r}")
        self._related[table] = Relationship(*(key or "" for key in keys))
        return None

    def is_related_to(self, table: str) -> bool:
        return table in self._related

    def join_keys(self, related: "TableDescriptor") -> Relationship:
        """Return the keys joining this table to related, inferring empty ones.

        The foreign key defaults to the singular of the related table name, an
        underscore and the related primary key (offices.country_iso for
        countries.iso); the primary key defaults to the related primary key.
        """
        foreign_key, primary_key = self._related[related.alias]
        if not foreign_key:
            foreign_key = f"{singular(related.name)}_{related.primary_key}"
        if not primary_key:
            primary_key = related.primary_key
        return Relationship(foreign_key, primary_key)
