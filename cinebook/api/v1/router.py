from fastapi import APIRouter

# Auth
from cinebook.api.v1.public.auth import router as auth_router

# Public — discovery
from cinebook.api.v1.public.movies import router as public_movies_router
from cinebook.api.v1.public.shows import (
    router as public_shows_router,
    availability_router,
)

# Public — bookings
from cinebook.api.v1.public.bookings import router as bookings_router

# Public — user profile & booking history
from cinebook.api.v1.public.me import router as me_router

# Admin
from cinebook.api.v1.admin.movies import router as admin_movies_router
from cinebook.api.v1.admin.shows import router as admin_shows_router

api_router = APIRouter()

# --- Auth ---
api_router.include_router(auth_router)

# --- Public: discovery ---
api_router.include_router(public_movies_router)
api_router.include_router(public_shows_router)
api_router.include_router(availability_router)

# --- Public: bookings ---
api_router.include_router(bookings_router)

# --- Public: profile ---
api_router.include_router(me_router)

# --- Admin ---
api_router.include_router(admin_movies_router)
api_router.include_router(admin_shows_router)
