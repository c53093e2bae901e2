"""autoroute — build-time route collection and registration code generation.

Handlers declare their routes with decorators, scattered across modules::

    from autoroute import auto_register, get, post

    @auto_register("/events")
    @get("/search")
    async def search(request): ...

A build collects every unit into a shared registry, seals it, and
generates a module exposing ``register_service(config)`` and
``list_routes()``::

    from autoroute import BuildConfig, RouteBuild

    build = RouteBuild(BuildConfig(source_root="src"))
    report = build.collect(["src/app"])
    build.finish()
    build.write("src/app/_routes.py", ["/events"])
"""

from autoroute.markers import auto_register, delete, get, patch, post, put

__version__ = "0.1.0"
__all__ = [
    "ALL",
    "AutorouteError",
    "BuildConfig",
    "HttpVerb",
    "RegistryStore",
    "RouteBuild",
    "RouteDescriptor",
    "Scope",
    "ServiceConfig",
    "Synthesizer",
    "auto_register",
    "delete",
    "get",
    "patch",
    "post",
    "put",
]


def __getattr__(name: str) -> object:
    """Lazy imports for the build-side API.

    Keeps ``import autoroute`` (done by every annotated handler module)
    free of the registry and template machinery.
    """
    if name in ("HttpVerb", "RouteDescriptor"):
        from autoroute import route as _route

        return getattr(_route, name)

    if name == "BuildConfig":
        from autoroute.config import BuildConfig

        return BuildConfig

    if name in ("ALL", "RegistryStore"):
        from autoroute import registry as _registry

        return getattr(_registry, name)

    if name == "RouteBuild":
        from autoroute.build import RouteBuild

        return RouteBuild

    if name == "Synthesizer":
        from autoroute.synthesize import Synthesizer

        return Synthesizer

    if name in ("Scope", "ServiceConfig"):
        from autoroute import runtime as _runtime

        return getattr(_runtime, name)

    if name == "AutorouteError":
        from autoroute.errors import AutorouteError

        return AutorouteError

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
