"""MongoDB MCP Tools Package.

Available Tool Classes:
    - QueryTools: find, findOne, aggregate, count, distinct
    - MutationTools: insertOne, updateOne, deleteOne
    - IntrospectionTools: listCollections, getSchema

All tools share BaseTool for database access, ObjectId coercion, result
serialization and error translation.
"""

from .introspection_tools import IntrospectionTools
from .mutation_tools import MutationTools
from .query_tools import QueryTools

__all__ = ["IntrospectionTools", "MutationTools", "QueryTools"]
