"""
GraphQL API package: Strawberry schema for news items, comments and users.
"""
from .schema import create_graphql_router, schema, validate_schema

__all__ = ["create_graphql_router", "schema", "validate_schema"]
