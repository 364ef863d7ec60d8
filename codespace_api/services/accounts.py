from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
import secrets
from pathlib import PurePosixPath
from typing import Callable

from codespace_api.config import Settings, get_settings
from codespace_api.models import AccountCreated, AccountRead
from codespace_api.provisioner import Provisioner, get_provisioner
from codespace_api.services.errors import (
    CodespaceException,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 32

PASSWORD_LENGTH = 16
PASSWORD_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789!@#$%^&*"

SSH_DIR = ".ssh"
PRIVATE_KEY = "id_rsa"
PUBLIC_KEY = "id_rsa.pub"
AUTHORIZED_KEYS = "authorized_keys"


def validate_username(username: str | None) -> str:
    if not username or not username.strip():
        raise ValidationError("Username cannot be empty")
    if not USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN:
        raise ValidationError(
            f"Username must be between {USERNAME_MIN_LEN} and {USERNAME_MAX_LEN} characters"
        )
    if not USERNAME_RE.fullmatch(username):
        raise ValidationError("Username can only contain letters, numbers, hyphens, and underscores")
    return username


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


@dataclass(frozen=True)
class AccountPaths:
    home: str
    ssh_dir: str
    private_key: str
    public_key: str
    authorized_keys: str

    @classmethod
    def for_home(cls, home: str) -> AccountPaths:
        ssh_dir = PurePosixPath(home) / SSH_DIR
        return cls(
            home=home,
            ssh_dir=str(ssh_dir),
            private_key=str(ssh_dir / PRIVATE_KEY),
            public_key=str(ssh_dir / PUBLIC_KEY),
            authorized_keys=str(ssh_dir / AUTHORIZED_KEYS),
        )


@dataclass
class _Compensations:
    """Undo actions registered by forward steps, run newest first on failure."""

    username: str
    actions: list[tuple[str, Callable[[], None]]] = field(default_factory=list)

    def register(self, description: str, action: Callable[[], None]) -> None:
        self.actions.append((description, action))

    def unwind(self) -> list[str]:
        errors: list[str] = []
        for description, action in reversed(self.actions):
            try:
                action()
                logger.info("Compensation '%s' done for %s", description, self.username)
            except Exception as exc:
                logger.exception("Compensation '%s' failed for %s", description, self.username)
                errors.append(f"{description}: {exc}")
        return errors


class AccountWorkflow:
    """Create, inspect and delete provisioned Unix accounts."""

    def __init__(self, *, provisioner: Provisioner | None = None, settings: Settings | None = None) -> None:
        self._provisioner = provisioner or get_provisioner()
        self._settings = settings or get_settings()

    def create_account(self, username: str | None) -> AccountCreated:
        username = validate_username(username)
        if self._provisioner.account_exists(username):
            raise ConflictError(f"User '{username}' already exists")

        paths = AccountPaths.for_home(self._settings.home_directory(username))
        password = generate_password()
        compensations = _Compensations(username=username)
        logger.info("Creating account %s at %s", username, paths.home)
        try:
            # only undo what this request created
            if not self._provisioner.path_exists(paths.home):
                compensations.register("remove home directory", lambda: self._remove_home_if_present(paths.home))
            self._create_directories(paths)

            self._provisioner.create_account(username, home=paths.home, shell=self._settings.shell)
            compensations.register("delete account", lambda: self._delete_account_if_present(username))
            self._provisioner.set_password(username, password)

            public_key = self._generate_keys(username, paths)
            self._harden_permissions(username, paths)
        except CodespaceException as exc:
            logger.error("Failed to create account %s: %s", username, exc)
            exc.diagnostics.extend(compensations.unwind())
            raise
        except Exception:
            logger.exception("Unexpected error creating account %s", username)
            compensations.unwind()
            raise

        logger.info("Successfully created account %s", username)
        return AccountCreated(
            username=username,
            temp_password=password,
            home_directory=paths.home,
            ssh_public_key=public_key,
        )

    def get_account(self, username: str) -> AccountRead:
        self._require_existing(username)
        paths = AccountPaths.for_home(self._settings.home_directory(username))
        public_key = self._provisioner.read_optional_file(paths.public_key)
        return AccountRead(
            username=username,
            home_directory=paths.home,
            ssh_public_key=public_key.strip(),
            is_active=self._is_active(username),
        )

    def delete_account(self, username: str) -> None:
        self._require_existing(username)
        home = self._settings.home_directory(username)
        logger.info("Deleting account %s", username)
        try:
            self._provisioner.delete_account(username, remove_home=True)
            # userdel -r only removes the home recorded in passwd
            self._remove_home_if_present(home)
        except CodespaceException as exc:
            logger.error("Failed to delete account %s: %s", username, exc)
            raise
        logger.info("Successfully deleted account %s", username)

    def _require_existing(self, username: str) -> None:
        try:
            validate_username(username)
        except ValidationError as exc:
            # no account this service provisions can carry such a name
            raise NotFoundError(f"User '{username}' does not exist") from exc
        if not self._provisioner.account_exists(username):
            raise NotFoundError(f"User '{username}' does not exist")

    def _create_directories(self, paths: AccountPaths) -> None:
        self._provisioner.make_directories(self._settings.base_dir)
        self._provisioner.make_directories(paths.home, paths.ssh_dir)

    def _generate_keys(self, username: str, paths: AccountPaths) -> str:
        comment = f"{username}@{self._settings.key_comment_host}"
        self._provisioner.generate_keypair(paths.private_key, comment=comment, bits=self._settings.key_bits)
        self._provisioner.copy_file(paths.public_key, paths.authorized_keys)
        return self._provisioner.read_file(paths.public_key).strip()

    def _harden_permissions(self, username: str, paths: AccountPaths) -> None:
        self._provisioner.chown_recursive(paths.home, owner=username, group=username)
        self._provisioner.chmod(paths.home, "700")
        self._provisioner.chmod(paths.ssh_dir, "700")
        self._provisioner.chmod(paths.private_key, "600")
        self._provisioner.chmod(paths.authorized_keys, "600")

    def _is_active(self, username: str) -> bool:
        try:
            status = self._provisioner.account_status(username)
        except CodespaceException as exc:
            logger.warning("Could not query status for %s: %s", username, exc)
            return False
        return not status.locked

    def _delete_account_if_present(self, username: str) -> None:
        if self._provisioner.account_exists(username):
            self._provisioner.delete_account(username, remove_home=False)

    def _remove_home_if_present(self, home: str) -> None:
        if self._provisioner.path_exists(home):
            self._provisioner.remove_tree(home)


def get_workflow() -> AccountWorkflow:
    return AccountWorkflow()
