from pydantic import BaseModel
from typing import Optional


class UploadUrlRequest(BaseModel):
    contentType: str
    filename: Optional[str] = None


class UploadUrlResponse(BaseModel):
    uploadUrl: str
    imageUrl: str
    imageId: str
