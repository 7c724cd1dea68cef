from cinebook.db.session import Base
from cinebook.models.user import User
from cinebook.models.movie import Movie, MovieCredit
from cinebook.models.show import Show
from cinebook.models.seat import Seat
from cinebook.models.booking import Booking, BookingSeat
