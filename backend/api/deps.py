"""Shared FastAPI dependencies."""
from functools import lru_cache

from config import settings
from core.services import Services, build_services


@lru_cache
def get_services() -> Services:
    return build_services(settings)
