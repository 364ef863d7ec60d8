from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import PurePosixPath

from codespace_api.config import Settings, get_settings
from codespace_api.proc import CommandResult, CommandRunner, execute, run_command

logger = logging.getLogger(__name__)

# passwd -S state field values meaning the password is locked (Linux shadow / BSD style).
LOCKED_STATES = frozenset({"L", "LK"})


@dataclass(frozen=True)
class AccountStatus:
    username: str
    state: str | None
    raw: str

    @property
    def locked(self) -> bool:
        return self.state in LOCKED_STATES


def parse_passwd_status(username: str, output: str) -> AccountStatus:
    """Parse ``passwd -S`` output, e.g. ``alice P 10/17/2026 0 99999 7 -1``."""
    line = output.strip().splitlines()[0] if output.strip() else ""
    fields = line.split()
    state = fields[1] if len(fields) > 1 and fields[0] == username else None
    return AccountStatus(username=username, state=state, raw=line)


class _PrivilegedAdapter:
    def __init__(
        self,
        *,
        runner: CommandRunner | None = None,
        use_sudo: bool = False,
        timeout: float | None = None,
    ) -> None:
        self._runner = runner
        self._prefix = ["sudo", "-n"] if use_sudo else []
        self._timeout = timeout

    def _run(self, command: list[str], *, error_message: str, input: str | None = None) -> CommandResult:
        return run_command(
            self._prefix + command,
            runner=self._runner,
            input=input,
            timeout=self._timeout,
            error_message=error_message,
        )

    def _probe(self, command: list[str], *, privileged: bool = True) -> CommandResult:
        prefix = self._prefix if privileged else []
        return execute(prefix + command, runner=self._runner, timeout=self._timeout)


class AccountAdapter(_PrivilegedAdapter):
    """Adapter over the OS user and password database."""

    def account_exists(self, username: str) -> bool:
        exists = self._probe(["id", "-u", username], privileged=False).ok
        logger.debug("Account %s exists=%s", username, exists)
        return exists

    def create_account(self, username: str, *, home: str, shell: str) -> None:
        logger.info("Creating OS account %s (home=%s shell=%s)", username, home, shell)
        self._run(
            ["useradd", "-M", "-d", home, "-s", shell, username],
            error_message="Failed to create user",
        )

    def set_password(self, username: str, password: str) -> None:
        logger.info("Setting password for %s", username)
        self._run(["chpasswd"], input=f"{username}:{password}\n", error_message="Failed to set password")

    def delete_account(self, username: str, *, remove_home: bool) -> None:
        logger.info("Deleting OS account %s (remove_home=%s)", username, remove_home)
        cmd = ["userdel", "-r", username] if remove_home else ["userdel", username]
        self._run(cmd, error_message="Failed to delete user")

    def account_status(self, username: str) -> AccountStatus:
        result = self._run(["passwd", "-S", username], error_message="Failed to query account status")
        return parse_passwd_status(username, result.stdout)


class HomeAdapter(_PrivilegedAdapter):
    """Adapter for filesystem operations under the base directory."""

    def make_directories(self, *paths: str) -> None:
        logger.debug("Creating directories: %s", ", ".join(paths))
        self._run(["mkdir", "-p", *paths], error_message="Failed to create user directory")

    def path_exists(self, path: str) -> bool:
        return self._probe(["test", "-e", path]).ok

    def remove_tree(self, path: str) -> None:
        logger.info("Removing directory tree: %s", path)
        self._run(["rm", "-rf", "--", path], error_message=f"Failed to remove {path}")

    def generate_keypair(self, key_path: str, *, comment: str, bits: int) -> None:
        logger.info("Generating RSA-%s keypair at %s", bits, key_path)
        self._run(
            ["ssh-keygen", "-q", "-t", "rsa", "-b", str(bits), "-N", "", "-C", comment, "-f", key_path],
            error_message="Failed to generate SSH key",
        )

    def copy_file(self, source: str, destination: str) -> None:
        self._run(["cp", source, destination], error_message=f"Failed to copy {source} to {destination}")

    def read_file(self, path: str) -> str:
        result = self._run(["cat", path], error_message=f"Failed to read {path}")
        return result.stdout

    def read_optional_file(self, path: str) -> str:
        if not self.path_exists(path):
            logger.debug("File not present: %s", path)
            return ""
        return self.read_file(path)

    def chown_recursive(self, path: str, *, owner: str, group: str) -> None:
        self._run(["chown", "-R", f"{owner}:{group}", path], error_message="Failed to set ownership")

    def chmod(self, path: str, mode: str) -> None:
        name = PurePosixPath(path).name
        self._run(["chmod", mode, path], error_message=f"Failed to set permissions on {name}")


class Provisioner:
    """Facade over the account and home adapters used by the account workflow."""

    def __init__(self, *, accounts: AccountAdapter | None = None, homes: HomeAdapter | None = None) -> None:
        self.accounts = accounts or AccountAdapter()
        self.homes = homes or HomeAdapter()

    @classmethod
    def from_settings(cls, settings: Settings, *, runner: CommandRunner | None = None) -> Provisioner:
        options = {"runner": runner, "use_sudo": settings.use_sudo, "timeout": settings.command_timeout}
        return cls(accounts=AccountAdapter(**options), homes=HomeAdapter(**options))

    def account_exists(self, username: str) -> bool:
        return self.accounts.account_exists(username)

    def create_account(self, username: str, *, home: str, shell: str) -> None:
        self.accounts.create_account(username, home=home, shell=shell)

    def set_password(self, username: str, password: str) -> None:
        self.accounts.set_password(username, password)

    def delete_account(self, username: str, *, remove_home: bool) -> None:
        self.accounts.delete_account(username, remove_home=remove_home)

    def account_status(self, username: str) -> AccountStatus:
        return self.accounts.account_status(username)

    def make_directories(self, *paths: str) -> None:
        self.homes.make_directories(*paths)

    def path_exists(self, path: str) -> bool:
        return self.homes.path_exists(path)

    def remove_tree(self, path: str) -> None:
        self.homes.remove_tree(path)

    def generate_keypair(self, key_path: str, *, comment: str, bits: int) -> None:
        self.homes.generate_keypair(key_path, comment=comment, bits=bits)

    def copy_file(self, source: str, destination: str) -> None:
        self.homes.copy_file(source, destination)

    def read_file(self, path: str) -> str:
        return self.homes.read_file(path)

    def read_optional_file(self, path: str) -> str:
        return self.homes.read_optional_file(path)

    def chown_recursive(self, path: str, *, owner: str, group: str) -> None:
        self.homes.chown_recursive(path, owner=owner, group=group)

    def chmod(self, path: str, mode: str) -> None:
        self.homes.chmod(path, mode)


provisioner = Provisioner.from_settings(get_settings())


def get_provisioner() -> Provisioner:
    return provisioner
