from .api_repo import ApiRepository

__all__ = ["ApiRepository"]
