"""HTTP interface for dashquery."""

from dashquery.api.app import create_app

__all__ = ["create_app"]
