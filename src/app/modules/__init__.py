"""Feature modules with auto-discovery."""

from importlib import import_module
from importlib.util import find_spec
from pathlib import Path

import structlog
from fastapi import APIRouter


logger = structlog.get_logger()


def discover_modules() -> list[APIRouter]:
    """Auto-discover and return routers from all modules.

    Scans the modules directory for packages that ship a ``routes``
    submodule exposing a ``router`` attribute. Routes are imported
    from here rather than from each package's ``__init__`` so that
    models can be imported across modules without pulling in routes.

    Returns:
        List of FastAPI routers from discovered modules.
    """
    modules_dir = Path(__file__).parent
    routers: list[APIRouter] = []

    for path in sorted(modules_dir.iterdir()):
        if not path.is_dir() or path.name.startswith("_"):
            continue
        routes_name = f"app.modules.{path.name}.routes"
        if find_spec(routes_name) is None:
            continue
        module = import_module(routes_name)
        if hasattr(module, "router"):
            routers.append(module.router)
            logger.debug("module_loaded", module=path.name)

    return routers
