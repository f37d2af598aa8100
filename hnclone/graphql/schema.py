"""
Main GraphQL schema definition using Strawberry
"""
import logging
from typing import Any

import strawberry
from graphql import GraphQLError, get_introspection_query, graphql_sync
from graphql import validate_schema as gql_validate_schema
from strawberry.fastapi import GraphQLRouter
from strawberry.schema.config import StrawberryConfig
from strawberry.types import ExecutionContext

from hnclone.config import settings
from hnclone.graphql.context import (
    GraphQLContext,
    InvalidInputError,
    NotAuthenticatedError,
    get_context,
)
from hnclone.graphql.mutations import Mutation
from hnclone.graphql.queries import Query
from hnclone.graphql.scalars import DATE_SCALAR, Date

logger = logging.getLogger(__name__)

# Errors a client can cause; reported in the response but not logged as failures.
EXPECTED_ERRORS = (NotAuthenticatedError, InvalidInputError)


class Schema(strawberry.Schema):
    def process_errors(
        self,
        errors: list[GraphQLError],
        execution_context: ExecutionContext | None = None,
    ) -> None:
        unexpected = []
        for error in errors:
            if isinstance(error.original_error, EXPECTED_ERRORS):
                logger.info("GraphQL request rejected: %s", error.message)
            else:
                unexpected.append(error)
        if unexpected:
            super().process_errors(unexpected, execution_context)


schema = Schema(
    query=Query,
    mutation=Mutation,
    config=StrawberryConfig(scalar_map={Date: DATE_SCALAR}),
)


def validate_schema() -> None:
    """Validate the GraphQL schema at startup.

    Resolves every type reference and runs an introspection query so a
    broken schema fails application start instead of the first request.
    """
    graphql_schema = schema._schema

    errors = gql_validate_schema(graphql_schema)
    if errors:
        raise RuntimeError(
            "GraphQL schema validation failed: " + "; ".join(str(e) for e in errors)
        )

    result = graphql_sync(graphql_schema, get_introspection_query())
    if result.errors:
        raise RuntimeError(
            "GraphQL introspection failed: " + "; ".join(str(e) for e in result.errors)
        )

    logger.info("GraphQL schema validation successful")


def create_graphql_router() -> GraphQLRouter[GraphQLContext, None]:
    """Create the ``/graphql`` router; GraphiQL is served only in debug mode."""
    return GraphQLRouter(
        schema,
        path="/graphql",
        graphql_ide="graphiql" if settings.DEBUG else None,
        context_getter=get_context,
    )


async def execute(
    query: str,
    context: GraphQLContext,
    variables: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Run *query* in-process with *context* and return its ``data``.

    Used by the server-rendered pages.  The first error is re-raised as
    the exception a resolver threw, so pages can catch
    ``NotAuthenticatedError`` and friends directly.
    """
    result = await schema.execute(query, variable_values=variables, context_value=context)
    if result.errors:
        original = result.errors[0].original_error
        if original is not None:
            raise original
        raise RuntimeError(result.errors[0].message)
    return result.data or {}
