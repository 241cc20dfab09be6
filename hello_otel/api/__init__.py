"""HTTP surface: FastAPI app factory and the uvicorn-backed server lifecycle."""
from .main import create_app
from .server import ServerLifecycle, ServerStartupError

__all__ = ["ServerLifecycle", "ServerStartupError", "create_app"]
