from playlog_api.history.router import router

__all__ = ["router"]
