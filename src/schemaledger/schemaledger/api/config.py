"""
Application settings, read once from the environment by the host and the CLI.
"""

from schemaledger_common.settings import Settings

settings = Settings()
