import mimetypes
import os
from pathlib import Path
from pydantic import BaseModel, Field
from typing import Annotated, Literal, Optional, Union

class StagedFile(BaseModel):
    """A locally selected file that has not been uploaded yet."""
    path: Path
    filename: str
    content_type: Optional[str] = None
    size: int = 0

    @classmethod
    def from_path(cls, path, filename: Optional[str] = None, content_type: Optional[str] = None) -> "StagedFile":
        path = Path(path)
        filename = filename or path.name
        if content_type is None:
            content_type, _ = mimetypes.guess_type(filename)
        return cls(path=path, filename=filename, content_type=content_type, size=os.path.getsize(path))

    @property
    def extension(self) -> str:
        """Lower-case extension without the dot, empty if the name has none."""
        _, ext = os.path.splitext(self.filename)
        return ext.lstrip(".").lower()


class EmptyAsset(BaseModel):
    kind: Literal["empty"] = "empty"

class StagedAsset(BaseModel):
    kind: Literal["staged"] = "staged"
    file: StagedFile

class UploadedAsset(BaseModel):
    kind: Literal["uploaded"] = "uploaded"
    url: str

# Nothing selected / selected locally / committed to storage
AssetRef = Annotated[Union[EmptyAsset, StagedAsset, UploadedAsset], Field(discriminator="kind")]


def asset_from_url(url: Optional[str]):
    return UploadedAsset(url=url) if url else EmptyAsset()

def asset_url(asset) -> Optional[str]:
    return asset.url if isinstance(asset, UploadedAsset) else None
