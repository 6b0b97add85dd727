"""
Web-novel crawling and batch translation to Vietnamese.
"""

__version__ = "1.0.0"
