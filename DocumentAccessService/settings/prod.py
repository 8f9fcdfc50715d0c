"""
Production settings for DocumentAccessService.
"""
import os

from .base import *  # noqa: F403, F401

DEBUG = False

ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "").split(",")

# Secret key must come from the environment
SECRET_KEY = os.environ["SECRET_KEY"]

# Logging in production
LOGGING = get_logging_config("production")  # noqa: F405
LOGGING["handlers"]["file"]["filename"] = os.environ.get(  # noqa: F405
    "LOG_FILE", "/var/log/document-access/application.log"
)
LOGGING["root"]["handlers"].append("file")  # noqa: F405
