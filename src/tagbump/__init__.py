"""
tagbump - GitOps image tag promotion for Helm chart repositories
"""

__version__ = "0.1.0"

from .core import TagUpdater
from .errors import UpdaterError
from .models import InvocationParameters

__all__ = ["InvocationParameters", "TagUpdater", "UpdaterError"]
