"""
Remote probe client.

Connects to one host over SSH with asyncssh, runs `ip link show` and
extracts the MAC addresses of its interfaces.

One probe is one connection, one authentication attempt and one command.
There is no retry: a host that fails is reported once and skipped by the
scanner.

Per-host timeout covers the whole pipeline. Connect, handshake and
authentication share it first; the command gets whatever is left.

A private key is imported once per client and credential, on a worker
thread, and reused by every probe. Key decryption never runs on the event
loop.
"""

import asyncio
import logging
import re
from typing import Dict, FrozenSet, Optional, Union

import asyncssh

from .exceptions import AuthFailed, CommandFailed, ConnectionFailed
from .models import (
    AuthCredential,
    DeviceIdentity,
    Password,
    PrivateKeyFile,
    PrivateKeyMaterial,
    ProbeConfig,
)

logger = logging.getLogger(__name__)

IP_LINK_COMMAND = "ip link show"

# Six colon-separated hex pairs, not embedded in a longer colon-hex run
# (IPv6 literals, 20-octet InfiniBand addresses).
MAC_PATTERN = re.compile(
    r"(?<![0-9a-f:])([0-9a-f]{2}(?::[0-9a-f]{2}){5})(?![0-9a-f:])",
    re.IGNORECASE,
)


def extract_macs(text: str) -> FrozenSet[str]:
    """Return every MAC address in text, lowercased. No match gives an empty set."""
    return frozenset(m.lower() for m in MAC_PATTERN.findall(text or ""))


def normalize_key_text(key_data: str) -> str:
    """
    Normalize private key text to LF line endings with a trailing newline.

    Keys pasted into .env files often arrive with CRLF endings, stray
    indentation or literal "\\n" sequences instead of newlines.
    """
    text = key_data.strip()
    if "\n" not in text and "\\n" in text:
        text = text.replace("\\n", "\n")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    # Interior blank lines are kept: legacy encrypted PEM needs the one after DEK-Info
    return "\n".join(line.strip() for line in text.split("\n")) + "\n"


def load_client_key(credential: AuthCredential, address: str) -> asyncssh.SSHKey:
    """
    Import the private key of a key-based credential.

    Key material is parsed in memory by asyncssh; nothing is written to
    disk.

    Raises:
        AuthFailed: key unreadable, malformed, or passphrase mismatch
    """
    if isinstance(credential, PrivateKeyFile):
        try:
            key_data = credential.path.read_text()
        except OSError as e:
            raise AuthFailed(
                address,
                f"cannot read key file {credential.path}: {e.strerror or e}",
                AuthFailed.KEY,
            ) from e
    elif isinstance(credential, PrivateKeyMaterial):
        key_data = credential.key_data
    else:
        raise TypeError(f"not a key credential: {type(credential).__name__}")

    try:
        return asyncssh.import_private_key(
            normalize_key_text(key_data), credential.passphrase
        )
    except (asyncssh.KeyImportError, asyncssh.KeyEncryptionError) as e:
        raise AuthFailed(address, f"invalid private key: {e}", AuthFailed.KEY) from e


class ProbeClient:
    """
    Fetch the MAC addresses of a host over SSH.

    Host keys are not verified: the scanner talks to devices whose keys are
    unknown in advance and only reads interface information.
    """

    def __init__(self, command: str = IP_LINK_COMMAND):
        self.command = command
        # credential -> imported key, or the reason it could not be imported
        self._keys: Dict[AuthCredential, Union[asyncssh.SSHKey, str]] = {}

    async def prepare(self, config: ProbeConfig):
        """
        Import the private key of config's credential on a worker thread.

        The scanner calls this once before fan-out. fetch_macs calls it too,
        so sequential callers share the cached key; concurrent callers
        should await it first. A key that fails to import is remembered,
        and every probe using it fails with AuthFailed. Password
        credentials need nothing.
        """
        credential = config.credential
        if isinstance(credential, Password) or credential in self._keys:
            return

        try:
            key = await asyncio.to_thread(load_client_key, credential, "")
        except AuthFailed as e:
            logger.warning(f"Private key unusable: {e.reason}")
            self._keys[credential] = e.reason
        else:
            self._keys[credential] = key

    def _auth_options(self, config: ProbeConfig, address: str) -> dict:
        credential = config.credential
        if isinstance(credential, Password):
            return {
                "password": credential.secret,
                "client_keys": None,
                "preferred_auth": ("password", "keyboard-interactive"),
            }

        key = self._keys[credential]
        if isinstance(key, str):
            raise AuthFailed(address, key, AuthFailed.KEY)
        return {
            "client_keys": [key],
            "preferred_auth": ("publickey",),
        }

    def _auth_method(self, config: ProbeConfig) -> str:
        if isinstance(config.credential, Password):
            return AuthFailed.PASSWORD
        return AuthFailed.KEY

    async def _connect(self, address: str, config: ProbeConfig, timeout: float):
        """Open, handshake and authenticate. Returns a connected client."""
        connect_options = {
            "host": address,
            "port": config.port,
            "username": config.username,
            "known_hosts": None,
            "agent_path": None,
            "connect_timeout": timeout,
        }
        connect_options.update(self._auth_options(config, address))

        try:
            return await asyncio.wait_for(asyncssh.connect(**connect_options), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ConnectionFailed(address, f"timed out after {timeout:g}s") from e
        except asyncssh.PermissionDenied as e:
            raise AuthFailed(address, e.reason or str(e), self._auth_method(config)) from e
        except asyncssh.Error as e:
            raise ConnectionFailed(address, e.reason or str(e)) from e
        except OSError as e:
            raise ConnectionFailed(address, e.strerror or str(e)) from e

    async def _run_command(self, conn, address: str, timeout: float) -> str:
        if timeout <= 0:
            raise CommandFailed(address, "no time left to run the command")

        try:
            result = await asyncio.wait_for(conn.run(self.command, check=False), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise CommandFailed(address, f"command did not finish within {timeout:.1f}s") from e
        except asyncssh.Error as e:
            raise CommandFailed(address, e.reason or str(e)) from e
        except OSError as e:
            raise CommandFailed(address, e.strerror or str(e)) from e

        if result.exit_status is None:
            raise CommandFailed(address, "channel closed before the command exited")
        if result.exit_status != 0:
            logger.debug(f"{address}: '{self.command}' exited with {result.exit_status}")

        output = result.stdout or ""
        if isinstance(output, bytes):
            output = output.decode("utf-8", errors="replace")
        return output

    async def fetch_macs(self, address: str, config: ProbeConfig) -> DeviceIdentity:
        """
        Probe one host.

        Args:
            address: IPv4 address of the host
            config: Shared SSH settings for the scan

        Returns:
            DeviceIdentity with every MAC the host reported

        Raises:
            ConnectionFailed: connect or handshake failed or timed out
            AuthFailed: credential rejected or key unusable
            CommandFailed: command could not be run to completion
        """
        await self.prepare(config)

        loop = asyncio.get_running_loop()
        started = loop.time()

        logger.debug(f"Probing {address}:{config.port} as {config.username}")
        conn = await self._connect(address, config, config.timeout)
        try:
            remaining = config.timeout - (loop.time() - started)
            output = await self._run_command(conn, address, remaining)
        finally:
            conn.close()

        macs = extract_macs(output)
        logger.debug(f"{address}: {len(macs)} MAC address(es)")
        return DeviceIdentity(address=address, mac_addresses=macs)


async def fetch_macs(
    address: str,
    config: ProbeConfig,
    client: Optional[ProbeClient] = None,
) -> DeviceIdentity:
    """Convenience wrapper for a single host."""
    return await (client or ProbeClient()).fetch_macs(address, config)
