# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# data access for one part of the site:
#
#   news_item_service  news item reads + upvote / hide / submit
#   feed_service       ordered feed slices per FeedType (id slices cached)
#   comment_service    comment and reply lookups
#   user_service       profiles, account creation, password checks
#
# All service functions accept an AsyncSession as their first argument.
# GraphQL resolvers reach them through the per-request GraphQLContext;
# the HTTP routers get the session from the ``get_db`` dependency, which
# owns the transaction boundary.
