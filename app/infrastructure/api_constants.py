"""
API endpoint constants and configuration.

This module contains all external API endpoint paths and related constants.
Centralizing these values makes it easy to swap out endpoints or update API versions.
"""


# Document store paths
class StorePaths:
    """Key paths inside the document store."""

    TREES = "trees"
    USERS = "users"
    VOLUNTEERS = "volunteers"
    VERIFIED_VOLUNTEERS = "volunteers/verified"

    @classmethod
    def tree(cls, uid: str) -> str:
        """Path of a single tree record."""
        return f"{cls.TREES}/{uid}"

    @classmethod
    def tree_field(cls, uid: str, field: str) -> str:
        """Path of one field (or sub-map) of a tree record."""
        return f"{cls.TREES}/{uid}/{field}"

    @classmethod
    def user(cls, uid: str) -> str:
        return f"{cls.USERS}/{uid}"

    @classmethod
    def volunteer(cls, key: str) -> str:
        return f"{cls.VOLUNTEERS}/{key}"

    @staticmethod
    def rest_url(path: str) -> str:
        """
        Realtime-database REST resource for a key path.

        Args:
            path: Slash separated key path, e.g. ``trees/<uid>/images``

        Returns:
            Relative URL with the ``.json`` suffix the REST API expects
        """
        return f"/{path.strip('/')}.json"


# Media host endpoints
class MediaEndpoints:
    """Media host endpoint paths, relative to the account root."""

    UPLOAD = "/{cloud_name}/image/upload"
    DESTROY = "/{cloud_name}/image/destroy"

    @classmethod
    def upload(cls, cloud_name: str) -> str:
        return cls.UPLOAD.format(cloud_name=cloud_name)

    @classmethod
    def destroy(cls, cloud_name: str) -> str:
        return cls.DESTROY.format(cloud_name=cloud_name)


# Text generation and plant identification endpoints
class AIEndpoints:
    """Endpoint paths for the AI collaborators."""

    CHAT_COMPLETIONS = "/chat/completions"
    IDENTIFY_ALL = "/identify/all"


# Identity provider endpoints
class IdentityEndpoints:
    """Identity toolkit account endpoints."""

    SIGN_UP = "/accounts:signUp"
    SIGN_IN = "/accounts:signInWithPassword"
    UPDATE = "/accounts:update"


# API Configuration Constants
class APIConstants:
    """General API configuration constants."""

    # HTTP Headers
    CONTENT_TYPE_JSON = "application/json"

    # Timeouts (in seconds)
    DEFAULT_TIMEOUT = 30.0
    UPLOAD_TIMEOUT = 60.0

    # Form field limits
    MAX_UPLOAD_BYTES = 20 << 20
