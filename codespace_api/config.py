from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os
from pathlib import PurePosixPath

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    base_dir: str = "/data/codespaces"
    shell: str = "/bin/bash"
    key_bits: int = 4096
    key_comment_host: str = "codespace"
    command_timeout: float = 120.0
    use_sudo: bool = False
    host: str = "0.0.0.0"
    port: int = 8080

    def home_directory(self, username: str) -> str:
        return str(PurePosixPath(self.base_dir) / username)

    @classmethod
    def from_env(cls) -> Settings:
        defaults = cls()
        return cls(
            base_dir=os.getenv("CODESPACE_BASE_DIR", defaults.base_dir),
            shell=os.getenv("CODESPACE_SHELL", defaults.shell),
            key_bits=int(os.getenv("CODESPACE_KEY_BITS", defaults.key_bits)),
            key_comment_host=os.getenv("CODESPACE_KEY_COMMENT_HOST", defaults.key_comment_host),
            command_timeout=float(os.getenv("CODESPACE_COMMAND_TIMEOUT", defaults.command_timeout)),
            use_sudo=os.getenv("CODESPACE_USE_SUDO", str(defaults.use_sudo)).strip().lower() in _TRUTHY,
            host=os.getenv("CODESPACE_HOST", defaults.host),
            port=int(os.getenv("CODESPACE_PORT", defaults.port)),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
