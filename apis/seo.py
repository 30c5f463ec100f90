from fastapi import APIRouter, Depends
from models.auth import Token
from helpers.auth import get_auth_token
from helpers.seo import analyze_readability, analyze_seo, html_to_text
from .schemas.seo import AnalyzeContentRequest, AnalyzeContentResponse

router = APIRouter(prefix="/seo", tags=["seo"])


@router.post("/analyze")
async def analyze_content(
    content_data: AnalyzeContentRequest,
    token: Token = Depends(get_auth_token)
) -> AnalyzeContentResponse:
    """Score editor content for SEO and readability."""

    return AnalyzeContentResponse(
        seo=analyze_seo(
            content_data.content,
            content_data.keyword,
            content_data.title,
            content_data.description
        ),
        readability=analyze_readability(html_to_text(content_data.content))
    )
