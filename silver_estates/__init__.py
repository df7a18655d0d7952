"""
The Silver Estates: real-estate listings application.
Ships the application core (frontend package) and the remote store service it runs against.
"""

__version__ = "1.0.0"
