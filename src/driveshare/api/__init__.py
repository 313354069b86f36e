"""HTTP surface for driveshare."""

from driveshare.api.app import create_app

__all__ = ["create_app"]
