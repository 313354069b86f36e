"""HTTP routers. Inclusion order matters: literal segments before ``{resource_id}``."""

from driveshare.api.routers import public, resources, sharing, trash

ROUTERS = (trash.router, sharing.router, resources.router, public.router)

__all__ = ["ROUTERS"]
