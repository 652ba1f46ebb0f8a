"""
Evidence routes: statistics and quotes from an uploaded source.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends

from tabwriter.core.dependencies import get_completion_client
from tabwriter.core.exceptions import InvalidInputError
from tabwriter.models.evidence import EvidenceRequest
from tabwriter.services.evidence_pipeline import extract_evidence
from tabwriter.services.llm_client import CompletionClient
from tabwriter.services.source_reader import SUPPORTED_EXTENSIONS, SourceDocument

router = APIRouter(tags=["evidence"])


@router.post("/evidence")
async def find_evidence(
    body: EvidenceRequest,
    client: CompletionClient = Depends(get_completion_client),
) -> Dict[str, Any]:
    if not body.filename.lower().endswith(SUPPORTED_EXTENSIONS):
        raise InvalidInputError(
            f"Unsupported source type; expected one of: {', '.join(SUPPORTED_EXTENSIONS)}"
        )
    document = SourceDocument.from_text(body.source_text, body.filename)
    result = await extract_evidence(body.user_text, document, body.options, client=client)
    return {"success": True, "evidence": result.to_json_dict()}
