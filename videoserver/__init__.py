"""
Video Server - register, list and remove videos stored in object storage.

This package contains the complete application:
- core: Framework-agnostic upload pipeline and metadata store
- infrastructure: Object storage integration
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "1.0.0"
