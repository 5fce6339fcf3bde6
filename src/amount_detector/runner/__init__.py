"""
CLI runner module.

Provides commands:
- text: Extract amounts from text
- image: Extract amounts from an image file
- init-config: Write a default config file
- check-config: Validate configuration

and the request handlers behind the text/image endpoints.
"""

from .handlers import handle_image_request, handle_text_request, health
from .main import create_cli, main

__all__ = [
    "create_cli",
    "handle_image_request",
    "handle_text_request",
    "health",
    "main",
]
