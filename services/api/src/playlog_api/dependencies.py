"""FastAPI dependencies resolving the services built in the app lifespan."""

from fastapi import Request

from collector.runloop import CollectorRunLoop
from collector.tokens import SpotifyTokenProvider
from playlog.history import HistoryService


def get_history(request: Request) -> HistoryService:
    return request.app.state.history


def get_run_loop(request: Request) -> CollectorRunLoop:
    return request.app.state.run_loop


def get_token_provider(request: Request) -> SpotifyTokenProvider:
    return request.app.state.token_provider
