from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResult(_CamelModel):
    message: str = "File uploaded successfully"
    filename: str
    original_name: str
    size: int
    path: str


class ImageRecord(_CamelModel):
    filename: str
    path: str
    size: int
    uploaded_at: datetime


class ImageList(BaseModel):
    images: list[ImageRecord]


class ErrorBody(BaseModel):
    error: str
