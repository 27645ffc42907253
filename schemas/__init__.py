# Schemas package
from .shared import CommentCreate, CommentUpdate, CommentResponse
from .posts import PostCreate, PostUpdate, PostResponse, PostResponseWithComments, PostVoteRequest, PostVoteResponse
from .events import EventCreate, EventUpdate, EventResponse, EventDetailResponse, RsvpRequest, RsvpResponse, RsvpEntry
from .travel import (
    TravelPlanCreate, TravelPlanUpdate, TravelPlanResponse, TravelPlanDetailResponse,
    VlogUpdate, VlogResponse, VlogDetailResponse, ReactionRequest, ReactionResponse
)
