from .ip_info import IpInfoClient

__all__ = ["IpInfoClient"]
