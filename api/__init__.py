"""HTTP layer: dependencies, error handlers and routers."""
