"""
PracticeHub client application package.

Wires the feature modules together and provides the terminal front end.
"""

from .container import ServiceContainer, get_container, reset_container

__all__ = ["ServiceContainer", "get_container", "reset_container"]
