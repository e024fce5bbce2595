# app/routes/__init__.py
from fastapi import APIRouter
from app.routes.auth import auth, profile
from app.routes.trip import trip_routes, collaborators, notes
from app.routes.activity import activity_routes
from app.routes.admin import users as admin_users


api_router = APIRouter()

# Auth routes
api_router.include_router(auth.router)
api_router.include_router(profile.router)

# Trip routes
api_router.include_router(trip_routes.router)
api_router.include_router(collaborators.router)
api_router.include_router(notes.router)

# Activity log routes
api_router.include_router(activity_routes.router)

# Admin routes
api_router.include_router(admin_users.router)
