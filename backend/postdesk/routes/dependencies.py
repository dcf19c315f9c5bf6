"""
PostDesk Backend — Route Dependencies
=======================================

What:  FastAPI dependencies that hand route handlers the components wired by
       create_app(). Nothing is looked up globally; every component lives on
       app.state of the application serving the request.
"""

from fastapi import Request

from postdesk.services.envelope import EnvelopeTransformer
from postdesk.services.post_service import PostService
from postdesk.services.user_service import UserService


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_post_service(request: Request) -> PostService:
    return request.app.state.post_service


def get_envelope(request: Request) -> EnvelopeTransformer:
    return request.app.state.envelope
