"""crudmodel: declare tables and relationships once, then CRUD, join and query them without SQL."""

from .model import Model, GetOptions
from .table import TableDescriptor, Relationship
from .session import QuerySession
from .builder import QueryBuilder
from .connection import connect
from .driver import Driver, SqlDriver
from .cache import Cache, MemoryCache, FileCache
from .result import NO_RESULTS, NoResults, Result
from .errors import UnknownFieldError
from .inflector import singular
