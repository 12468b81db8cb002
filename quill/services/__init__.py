# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single concern:
#
#   user_service           signup / signin / profile for User
#   social_auth_service    social login flow over the provider registry
#   article_service        CRUD + tags + read time for Article
#   reaction_service       like / dislike toggling
#   bookmark_service       per-user bookmarks
#   favorite_service       per-user favorites
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Failures are raised as ``quill.errors``
# exceptions; routers never inspect store exceptions themselves.
