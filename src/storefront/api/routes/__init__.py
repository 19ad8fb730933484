from __future__ import annotations

from .dependencies import router

# Import route modules to register endpoints with the shared router.
from . import cart as _cart  # noqa: F401
from . import catalog as _catalog  # noqa: F401
from . import location as _location  # noqa: F401
from . import pricing as _pricing  # noqa: F401

__all__ = ["router"]
