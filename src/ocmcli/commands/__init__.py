"""
OCM Commands Package.

This package contains all OCM CLI commands organized as separate modules
for better maintainability and modularity.
"""

from .login import login
from .logout import logout
from .token import token
from .get import get, post, whoami
from .config import config_app

__all__ = ["login", "logout", "token", "get", "post", "whoami", "config_app"]
