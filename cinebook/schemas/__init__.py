from cinebook.schemas.common import PaginatedResponse, ErrorResponse, SeatsUnavailableError, SeatsNotFoundError
from cinebook.schemas.user import User, UserCreate, UserUpdate, Token, TokenPayload
from cinebook.schemas.movie import (
    Movie, MovieCreate, MovieUpdate, MovieSummary, Credit, CastCrewUpdate,
)
from cinebook.schemas.show import Show, ShowCreate, ShowCreateResponse
from cinebook.schemas.seat import SeatView, ProvisionResponse
from cinebook.schemas.booking import Booking, BookingCreate, BookingDetail
