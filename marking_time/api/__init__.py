"""
REST API package.

Exposes session control, manual markers, CSV export and host event delivery
over HTTP.
"""

from .controller import APIController
from .routes import setup_routes
from .server import APIServer, create_app

__all__ = ["APIController", "APIServer", "create_app", "setup_routes"]
