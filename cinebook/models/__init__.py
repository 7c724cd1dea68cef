from cinebook.models.user import User
from cinebook.models.movie import Movie, MovieCredit, CreditKind
from cinebook.models.show import Show
from cinebook.models.seat import Seat, SeatTier
from cinebook.models.booking import Booking, BookingSeat
