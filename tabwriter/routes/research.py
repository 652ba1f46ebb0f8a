"""
Research routes: scholarly papers related to the draft.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from tabwriter.core.dependencies import get_completion_client
from tabwriter.models.research import ResearchRequest
from tabwriter.services.llm_client import CompletionClient
from tabwriter.services.research_aggregator import find_relevant_research

router = APIRouter(tags=["research"])


@router.post("/research")
async def recommend_research(
    body: ResearchRequest,
    client: CompletionClient = Depends(get_completion_client),
) -> Dict[str, Any]:
    papers = await find_relevant_research(
        body.text, body.max_papers, enhanced=body.enhanced, client=client
    )
    return {"articles": [paper.to_json_dict() for paper in papers]}
