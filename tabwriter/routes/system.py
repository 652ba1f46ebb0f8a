"""
System routes: liveness and configuration status
"""

from typing import Any, Dict

from fastapi import APIRouter

from tabwriter import __version__
from tabwriter.services.llm_client import llm_client
from tabwriter.services.search_apis import enabled_provider_names

router = APIRouter(tags=["system"])


@router.get("/health")
async def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "version": __version__,
        "completionConfigured": llm_client.is_initialized(),
        "searchProviders": enabled_provider_names(),
    }
