"""Application version metadata."""

__app_name__ = "ServiceDesk"
__company__ = "ServiceDesk Computers"
__version__ = "1.0.0"
