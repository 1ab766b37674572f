"""
namedquery - declarative, read-only data access through named identifiers.

    from namedquery import Get, configure
    from namedquery.adapters import MemoryStore, ModelSpec

    configure(MemoryStore([ModelSpec(name="user")]))
    Get.UsersByLastName.run("Turner")

Identifiers are parsed once into QuerySpecs, dispatched against the
configured data port, and returned as immutable Entity/Collection views that
cannot traverse further relations.
"""

from namedquery.config import Settings, configure, get_provider, get_settings, reset
from namedquery.dispatcher import Dispatcher, dispatch
from namedquery.errors import (
    AdapterNotConfigured,
    CannotProjectCollection,
    ConstraintViolation,
    DataPortError,
    InvalidAncestry,
    InvalidArguments,
    NotFound,
    QueryError,
    UndefinedAttribute,
    UndefinedModel,
    UnresolvableName,
)
from namedquery.handles import Get, QueryHandle, get
from namedquery.parser import parse_identifier
from namedquery.ports import DataPort, Identifiable, PortProvider
from namedquery.specs import Plurality, QueryMode, QuerySpec, RuntimeArgs
from namedquery.strings import inflections
from namedquery.view_registry import ViewRegistry, get_view_registry, register_view
from namedquery.views import Collection, Entity, as_dict

__version__ = "0.1.0"

__all__ = [
    # Entry points
    "Get",
    "get",
    "QueryHandle",
    "configure",
    "reset",
    "get_settings",
    "get_provider",
    "Settings",
    # Core
    "parse_identifier",
    "dispatch",
    "Dispatcher",
    "QuerySpec",
    "QueryMode",
    "Plurality",
    "RuntimeArgs",
    "inflections",
    # Views
    "Entity",
    "Collection",
    "as_dict",
    "ViewRegistry",
    "get_view_registry",
    "register_view",
    # Ports
    "DataPort",
    "PortProvider",
    "Identifiable",
    # Errors
    "QueryError",
    "UnresolvableName",
    "NotFound",
    "InvalidAncestry",
    "UndefinedAttribute",
    "ConstraintViolation",
    "CannotProjectCollection",
    "AdapterNotConfigured",
    "InvalidArguments",
    "UndefinedModel",
    "DataPortError",
]
