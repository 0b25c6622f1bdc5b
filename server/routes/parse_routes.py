"""Direct parse API route."""

from fastapi import APIRouter, Depends

from server.dependencies import get_parse_service
from server.schemas.common import ErrorResponse
from server.schemas.parse import ParsePsdRequest, ParsePsdResponse
from server.services.parse_service import ParseService

router = APIRouter(
    prefix="/api",
    tags=["Parse"],
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)


@router.post("/parse-psd", response_model=ParsePsdResponse)
async def parse_psd(
    request: ParsePsdRequest,
    service: ParseService = Depends(get_parse_service),
):
    """
    Parse a small PSD sent inline as a base64 data URL.

    Parameters:
        - fileData or filePath: data: URL of the document
        - fileName: Name reported back (optional)
        - includeImageData: Add the composite image as a PNG data URL

    Raises:
        - 400: Not a base64 data URL
        - 413: Larger than the direct limit (FILE_TOO_LARGE_DIRECT)
        - 422: Not a PSD, or the parser rejected it
    """
    return await service.parse(request)
