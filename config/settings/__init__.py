"""
Settings entry point.

DJANGO_ENV picks the module: "production", "test", or anything else for
development.
"""

import os

_env = os.getenv("DJANGO_ENV", "development").lower()

if _env == "production":
    from .production import *  # noqa: F401,F403
elif _env == "test":
    from .test import *  # noqa: F401,F403
else:
    from .development import *  # noqa: F401,F403
