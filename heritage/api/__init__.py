"""HTTP API: routes, middlewares and caller authentication."""
