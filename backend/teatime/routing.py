"""
Conventional routing.

Controllers are reached through ``{area=Customer}/{controller=Home}/{action=Index}/{id?}``.
``ControllerRouter`` expands each action into every concrete path that
pattern accepts, so ``/``, ``/Customer`` and ``/Customer/Home/Index`` all land
on ``Customer/Home/Index``.
"""

from collections.abc import Callable
from typing import Any, Literal

from fastapi import APIRouter
from fastapi.responses import HTMLResponse

DEFAULT_AREA = "Customer"
DEFAULT_CONTROLLER = "Home"
DEFAULT_ACTION = "Index"

IdMode = Literal["none", "optional", "required"]


def conventional_paths(
    area: str, controller: str, action: str, id_mode: IdMode = "none"
) -> list[str]:
    segments = [area, controller, action]
    defaults = [DEFAULT_AREA, DEFAULT_CONTROLLER, DEFAULT_ACTION]
    full = "/" + "/".join(segments)

    if id_mode == "required":
        return [full + "/{id}"]

    paths = [full]
    # Trailing segments can be dropped while each equals its default
    for i in range(len(segments) - 1, -1, -1):
        if segments[i] != defaults[i]:
            break
        paths.append("/" + "/".join(segments[:i]))

    if id_mode == "optional":
        paths.insert(0, full + "/{id}")
    return paths


class ControllerRouter(APIRouter):
    """APIRouter bound to one area/controller pair of the default route."""

    def __init__(self, area: str, controller: str, **kwargs: Any) -> None:
        kwargs.setdefault("default_response_class", HTMLResponse)
        kwargs.setdefault("include_in_schema", False)
        super().__init__(**kwargs)
        self.area = area
        self.controller = controller

    def action(
        self,
        name: str = DEFAULT_ACTION,
        *,
        methods: tuple[str, ...] = ("GET",),
        id: IdMode = "none",
        **kwargs: Any,
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            for path in conventional_paths(self.area, self.controller, name, id):
                self.add_api_route(path, func, methods=list(methods), **kwargs)
            return func

        return decorator
