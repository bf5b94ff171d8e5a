from .scanner import AccessPoint, parse_iwlist_scan
from .wireless import Wireless

__all__ = ["AccessPoint", "Wireless", "parse_iwlist_scan"]
