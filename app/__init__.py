"""HTTP layer for PageVault: routers, auth dependencies, middleware and error handlers."""
