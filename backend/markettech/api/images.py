"""
Product image passthrough
Serves uploaded files from UPLOAD_DIR with long-lived cache headers
"""
import logging
from pathlib import Path

from fastapi import APIRouter, HTTPException
from fastapi.responses import FileResponse

from markettech.core.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/images", tags=["Images"])

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
}


def content_type_for(filename: str) -> str:
    return CONTENT_TYPES.get(Path(filename).suffix.lower(), "application/octet-stream")


@router.get("/{image_path:path}")
def get_image(image_path: str):
    upload_dir = Path(settings.UPLOAD_DIR).resolve()
    if "\x00" in image_path:
        raise HTTPException(status_code=400, detail="Ruta de imagen inválida")

    try:
        target = (upload_dir / image_path).resolve()
    except ValueError:
        logger.warning(f"Rejected malformed image path: {image_path!r}")
        raise HTTPException(status_code=400, detail="Ruta de imagen inválida")

    if target != upload_dir and upload_dir not in target.parents:
        logger.warning(f"Rejected image path outside upload dir: {image_path}")
        raise HTTPException(status_code=400, detail="Ruta de imagen inválida")

    if not target.is_file():
        raise HTTPException(status_code=404, detail="Imagen no encontrada")

    return FileResponse(
        target,
        media_type=content_type_for(target.name),
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )
