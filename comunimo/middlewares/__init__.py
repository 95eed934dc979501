from comunimo.middlewares.db_middleware import DatabaseMiddleware
from comunimo.middlewares.auth_middleware import AdminMiddleware, IsAdmin

__all__ = ["DatabaseMiddleware", "AdminMiddleware", "IsAdmin"]
