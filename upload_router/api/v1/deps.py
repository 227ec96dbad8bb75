from __future__ import annotations

from upload_router.services.upload_service import get_negotiator

__all__ = ["get_negotiator"]
