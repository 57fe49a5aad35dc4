"""
Utils package for AESC Client
Contains URL helpers, output file management and error handling
"""

from .url_parser import URLParser
from .file_manager import FileManager

__all__ = ['URLParser', 'FileManager']
