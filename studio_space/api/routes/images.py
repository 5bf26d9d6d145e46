"""Image endpoints: upload and canvas manipulation.

Every operation is limited to images on boards the caller owns; anything else
answers 404 so foreign image ids are not disclosed.
"""

import uuid

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from studio_space.api.middleware.auth import get_current_user
from studio_space.models.image import (
    ImageDuplicateRequest,
    ImageEnvelope,
    ImageResponse,
    ImageUpdateRequest,
    ReorderRequest,
    ResizeRequest,
    RotateRequest,
)
from studio_space.models.user import UserDB
from studio_space.services.database import get_db_session
from studio_space.services.exceptions import InvalidInputError, PayloadTooLargeError
from studio_space.services.image_service import ImageManager
from studio_space.services.storage import (
    LocalImageStorage,
    get_image_storage,
    max_upload_bytes,
)

router = APIRouter(prefix="/api/images", tags=["images"])


def get_image_manager(
    db_session: AsyncSession = Depends(get_db_session),
    storage: LocalImageStorage = Depends(get_image_storage),
) -> ImageManager:
    return ImageManager(db_session, storage)


async def read_upload(upload: UploadFile | None) -> bytes:
    """Read an uploaded image, enforcing type and size limits.

    Raises:
        InvalidInputError: If no file was sent or it is not an image
        PayloadTooLargeError: If the file exceeds MAX_UPLOAD_BYTES
    """
    if upload is None or not upload.filename:
        raise InvalidInputError("No image file provided")

    if not (upload.content_type or "").startswith("image/"):
        raise InvalidInputError("Only image files are allowed")

    limit = max_upload_bytes()
    data = await upload.read(limit + 1)
    if len(data) > limit:
        raise PayloadTooLargeError(
            f"File too large, maximum size is {limit // (1024 * 1024)}MB",
            details={"max_bytes": limit},
        )
    if not data:
        raise InvalidInputError("No image file provided")

    return data


@router.post("/upload", response_model=ImageEnvelope, status_code=status.HTTP_201_CREATED)
async def upload_image(
    image: UploadFile | None = File(None),
    board_id: uuid.UUID | None = Form(None, alias="boardId"),
    position_x: int | None = Form(None, alias="positionX", ge=0),
    position_y: int | None = Form(None, alias="positionY", ge=0),
    width: int | None = Form(None, ge=1),
    height: int | None = Form(None, ge=1),
    rotation: int | None = Form(None, ge=-360, le=360),
    z_index: int | None = Form(None, alias="zIndex"),
    current_user: UserDB = Depends(get_current_user),
    images: ImageManager = Depends(get_image_manager),
) -> ImageEnvelope:
    """Upload an image onto a board.

    Args:
        image: The image file (multipart field ``image``)
        board_id: Target board, must be the caller's
        position_x: Canvas x, default 0
        position_y: Canvas y, default 0
        width: Display width, defaults to the stored width
        height: Display height, defaults to the stored height
        rotation: Degrees, default 0
        z_index: Stacking order, default 0
        current_user: Authenticated user
        images: Image manager

    Returns:
        ImageEnvelope with the placed image

    Raises:
        InvalidInputError: Missing file or board id, or not an image
        NotFoundError: Board missing or not the caller's
        PayloadTooLargeError: File over the upload limit
    """
    if board_id is None:
        raise InvalidInputError("Board ID is required")

    data = await read_upload(image)

    placed = await images.upload(
        current_user.id,
        board_id,
        data,
        placement={
            "position_x": position_x,
            "position_y": position_y,
            "width": width,
            "height": height,
            "rotation": rotation,
            "z_index": z_index,
        },
    )
    return ImageEnvelope(
        message="Image uploaded successfully",
        image=ImageResponse.model_validate(placed),
    )


@router.post("/reorder")
async def reorder_images(
    request: ReorderRequest,
    current_user: UserDB = Depends(get_current_user),
    images: ImageManager = Depends(get_image_manager),
) -> dict:
    """Restack images: each gets the z-index of its position in ``imageIds``.

    Raises:
        NotFoundError: If any image is missing or foreign; nothing changes
    """
    await images.reorder(request.image_ids, current_user.id)
    return {"message": "Images reordered successfully"}


@router.put("/{image_id}", response_model=ImageEnvelope)
async def update_image(
    image_id: uuid.UUID,
    request: ImageUpdateRequest,
    current_user: UserDB = Depends(get_current_user),
    images: ImageManager = Depends(get_image_manager),
) -> ImageEnvelope:
    """Move, resize, rotate or restack an image."""
    image = await images.update(image_id, current_user.id, request.model_dump(exclude_unset=True))
    return ImageEnvelope(
        message="Image updated successfully",
        image=ImageResponse.model_validate(image),
    )


@router.delete("/{image_id}")
async def delete_image(
    image_id: uuid.UUID,
    current_user: UserDB = Depends(get_current_user),
    images: ImageManager = Depends(get_image_manager),
) -> dict:
    """Remove an image from its board."""
    await images.delete(image_id, current_user.id)
    return {"message": "Image deleted successfully"}


@router.post(
    "/{image_id}/duplicate",
    response_model=ImageEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_image(
    image_id: uuid.UUID,
    request: ImageDuplicateRequest | None = None,
    current_user: UserDB = Depends(get_current_user),
    images: ImageManager = Depends(get_image_manager),
) -> ImageEnvelope:
    """Copy an image next to the original, one layer above it."""
    offsets = request or ImageDuplicateRequest()
    image = await images.duplicate(
        image_id, current_user.id, offset_x=offsets.offset_x, offset_y=offsets.offset_y
    )
    return ImageEnvelope(
        message="Image duplicated successfully",
        image=ImageResponse.model_validate(image),
    )


@router.post("/{image_id}/front", response_model=ImageEnvelope)
async def bring_to_front(
    image_id: uuid.UUID,
    current_user: UserDB = Depends(get_current_user),
    images: ImageManager = Depends(get_image_manager),
) -> ImageEnvelope:
    """Stack an image above every other image on its board."""
    image = await images.bring_to_front(image_id, current_user.id)
    return ImageEnvelope(
        message="Image brought to front",
        image=ImageResponse.model_validate(image),
    )


@router.post("/{image_id}/resize", response_model=ImageEnvelope)
async def resize_image(
    image_id: uuid.UUID,
    request: ResizeRequest,
    current_user: UserDB = Depends(get_current_user),
    images: ImageManager = Depends(get_image_manager),
) -> ImageEnvelope:
    """Grow or shrink an image, keeping its aspect ratio."""
    image = await images.resize(image_id, current_user.id, request.delta)
    return ImageEnvelope(
        message="Image resized successfully",
        image=ImageResponse.model_validate(image),
    )


@router.post("/{image_id}/rotate", response_model=ImageEnvelope)
async def rotate_image(
    image_id: uuid.UUID,
    request: RotateRequest,
    current_user: UserDB = Depends(get_current_user),
    images: ImageManager = Depends(get_image_manager),
) -> ImageEnvelope:
    """Rotate an image by a number of degrees."""
    image = await images.rotate(image_id, current_user.id, request.degrees)
    return ImageEnvelope(
        message="Image rotated successfully",
        image=ImageResponse.model_validate(image),
    )
