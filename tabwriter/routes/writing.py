"""
Writing-assistance routes: tone analysis and inline autocomplete.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from tabwriter.core.dependencies import get_autocomplete_service, get_completion_client
from tabwriter.models.writing import AutocompleteRequest, AutocompleteResponse, ToneAnalysisRequest
from tabwriter.services.autocomplete import AutocompleteService
from tabwriter.services.llm_client import CompletionClient
from tabwriter.services.tone_analysis import analyze_tone

router = APIRouter(tags=["writing"])


@router.post("/tone-analysis")
async def tone_analysis(
    body: ToneAnalysisRequest,
    client: CompletionClient = Depends(get_completion_client),
) -> Dict[str, Any]:
    analysis = await analyze_tone(body.text, client)
    return analysis.to_json_dict()


@router.post("/autocomplete")
async def autocomplete(
    body: AutocompleteRequest,
    service: AutocompleteService = Depends(get_autocomplete_service),
) -> Dict[str, Any]:
    suggestion = await service.suggest(body)
    return AutocompleteResponse(
        suggestion=suggestion,
        tone=body.tone,
        purpose=body.purpose,
        genre=body.genre,
        structure=body.structure,
    ).to_json_dict()
