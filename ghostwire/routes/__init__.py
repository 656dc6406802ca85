# Routes package

from ghostwire.routes.auth import auth_bp
from ghostwire.routes.api import api_bp

__all__ = ['auth_bp', 'api_bp']
