from typing import Literal
from app.schemas.base import CamelModel


class VoteRequest(CamelModel):
    vote: Literal["like", "dislike", "remove"]
