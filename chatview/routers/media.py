from fastapi import APIRouter, Depends, HTTPException, Response, status

from chatview.routers.deps import get_media_registry
from chatview.services.media import MediaRegistry

router = APIRouter(tags=["media"])


@router.get("/{key}")
def get_media(key: str, registry: MediaRegistry = Depends(get_media_registry)) -> Response:
    blob = registry.resolve(registry.handle_for_key(key))
    if blob is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Media not found")
    return Response(
        content=blob.data,
        media_type=blob.mime_type,
        headers={"Cache-Control": "no-store"},
    )
