from pydantic import BaseModel
from typing import List

from .artist import ArtistResponse
from .label import LabelResponse
from .release import ReleaseResponse

class SearchResults(BaseModel):
    query: str
    labels: List[LabelResponse] = []
    artists: List[ArtistResponse] = []
    releases: List[ReleaseResponse] = []
