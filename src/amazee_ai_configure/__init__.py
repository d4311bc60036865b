"""
amazee-ai-configure - Connect a project to the amazee.ai provider

Authenticates by email verification code, provisions (or reuses) a
private AI key for your team, and stores the credentials in .env.local
or as secrets.
"""

__version__ = "0.1.0"

from amazee_ai_configure.config import Settings

__all__ = ["Settings", "__version__"]
