"""Deploy key provisioning for git over SSH."""

import base64
import binascii
import os

from tagbump.constants import KEY_FILE_MODE, SSH_DIR_MODE
from tagbump.errors import CommandError, CredentialError
from tagbump.errors_catalog import actionable_error
from tagbump.models import SshSettings


class CredentialService:
    """Writes the deploy key and known hosts into a run-scoped SSH directory.

    Nothing outside ``ssh_dir`` is touched; callers hand the returned
    :class:`SshSettings` to git through ``GIT_SSH_COMMAND``.
    """

    KEY_FILE_NAME = "id_deploy"
    KNOWN_HOSTS_FILE_NAME = "known_hosts"

    def __init__(self, command_runner, filesystem_service, logger):
        self.command_runner = command_runner
        self.filesystem_service = filesystem_service
        self.logger = logger

    @staticmethod
    def decode_key(encoded_key: str) -> str:
        compact = "".join(encoded_key.split())
        try:
            decoded = base64.b64decode(compact, validate=True).decode("utf-8")
        except (binascii.Error, ValueError) as exc:
            raise CredentialError(actionable_error("invalid_deploy_key", error=exc)) from exc

        if not decoded.strip():
            raise CredentialError(actionable_error("invalid_deploy_key", error="decoded key is empty"))
        if not decoded.endswith("\n"):
            decoded += "\n"
        return decoded

    def provision(self, encoded_key: str, ssh_dir: str, host: str) -> SshSettings:
        private_key = self.decode_key(encoded_key)

        self.filesystem_service.ensure_private_dir(ssh_dir, SSH_DIR_MODE)
        key_path = os.path.join(ssh_dir, self.KEY_FILE_NAME)
        known_hosts_path = os.path.join(ssh_dir, self.KNOWN_HOSTS_FILE_NAME)

        try:
            self.filesystem_service.write_private_file(key_path, private_key, KEY_FILE_MODE)
        except OSError as exc:
            raise CredentialError(f"Could not write deploy key to {key_path}: {exc}") from exc
        self.logger.debug("Deploy key written to %s", key_path)

        self.register_host(host, known_hosts_path)
        return SshSettings(key_path=key_path, known_hosts_path=known_hosts_path)

    def register_host(self, host: str, known_hosts_path: str):
        try:
            result = self.command_runner.run(["ssh-keyscan", host], capture_output=True)
        except CommandError as exc:
            raise CredentialError(actionable_error("keyscan_failed", host=host, error=exc)) from exc

        entries = (result.stdout or "").strip()
        if not entries:
            raise CredentialError(
                actionable_error("keyscan_failed", host=host, error="no host keys returned")
            )

        try:
            self.filesystem_service.append_text(known_hosts_path, entries + "\n")
        except OSError as exc:
            raise CredentialError(f"Could not update {known_hosts_path}: {exc}") from exc
        self.logger.info("Registered host key for %s", host)
