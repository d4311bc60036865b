"""
Storage Module

Contains the env file and secrets writers.
"""

from amazee_ai_configure.storage.env_file import EnvFileWriter
from amazee_ai_configure.storage.secrets import SecretsWriter

__all__ = ["EnvFileWriter", "SecretsWriter"]
