"""Credential models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, SecretStr


class UserPassword(BaseModel):
    """
    A username and password for a repository URL.

    The password is a SecretStr: it renders as ``**********`` in repr, str
    and model dumps. Use ``password.get_secret_value()`` only when handing it
    to the process that needs it, and never log it.
    """

    model_config = ConfigDict(frozen=True)

    username: str
    password: SecretStr

    def __repr__(self) -> str:
        return f"UserPassword(username={self.username!r}, password=(hidden))"

    def __str__(self) -> str:
        return repr(self)
