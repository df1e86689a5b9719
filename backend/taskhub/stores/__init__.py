"""Store adapters over the database session."""

from taskhub.stores.blockers import BlockerStore
from taskhub.stores.entities import EntityStatusStore

__all__ = ["BlockerStore", "EntityStatusStore"]
