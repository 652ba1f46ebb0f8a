"""
Common dependencies for the TabWriter API.
"""

from fastapi import Depends, Request

from tabwriter.services.autocomplete import AutocompleteService
from tabwriter.services.llm_client import CompletionClient, get_llm_client


def get_completion_client() -> CompletionClient:
    """Shared completion client; raises ConfigurationError when unconfigured."""
    return get_llm_client()


def get_autocomplete_service(
    request: Request,
    client: CompletionClient = Depends(get_completion_client),
) -> AutocompleteService:
    """One autocomplete service (and cache) per application and client."""
    service = getattr(request.app.state, "autocomplete_service", None)
    if service is None or service.client is not client:
        service = AutocompleteService(client)
        request.app.state.autocomplete_service = service
    return service
