# file: controllers/images.py

import logging
import uuid

import boto3
from fastapi import APIRouter, Depends, HTTPException, status

from gifttracker import config
from gifttracker.models.image import UploadUrlRequest, UploadUrlResponse
from gifttracker.services.firebase_auth import get_current_user_id

router = APIRouter(tags=["images"])
logger = logging.getLogger(__name__)

_s3_client = None


def get_s3_client():
    """Lazy initialization of the S3 client."""
    global _s3_client
    if _s3_client is None:
        _s3_client = boto3.client('s3', region_name=config.AWS_REGION)
    return _s3_client


def build_image_url(key: str) -> str:
    return f"https://{config.IMAGES_BUCKET}.s3.amazonaws.com/{key}"


@router.post("/upload-url", response_model=UploadUrlResponse)
async def get_upload_url(request: UploadUrlRequest, user_id: str = Depends(get_current_user_id)):
    """
    Hands out a short-lived pre-signed PUT URL; the client uploads the bytes
    straight to the bucket and keeps imageUrl as the gift's image reference.
    """
    if not request.contentType.startswith("image/"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Invalid file type. Only images are allowed.")

    image_id = str(uuid.uuid4())
    key = f"{user_id}/{image_id}"

    try:
        upload_url = get_s3_client().generate_presigned_url(
            'put_object',
            Params={
                'Bucket': config.IMAGES_BUCKET,
                'Key': key,
                'ContentType': request.contentType,
            },
            ExpiresIn=config.UPLOAD_URL_EXPIRES,
        )
    except Exception as e:
        logger.error(f"Failed to sign upload URL for {key}: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")

    return UploadUrlResponse(uploadUrl=upload_url, imageUrl=build_image_url(key), imageId=image_id)
