from playlog_api.sync.router import router

__all__ = ["router"]
