# circle_board/api/v1/__init__.py

from fastapi import APIRouter

from . import auth, profiles, posts

api_router = APIRouter()

# それぞれの router 側で prefix を持っている前提にする
api_router.include_router(auth.router)      # auth.router 内で prefix="/auth"
api_router.include_router(profiles.router)  # profiles.router 内で prefix="/profiles"
api_router.include_router(posts.router)     # posts.router 内で prefix="/posts"
