"""SSH service for transferring files to and running commands on remote hosts."""

import socket
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

import paramiko

from cozydeploy.constants import SSH_CONNECTION_TIMEOUT, TRANSFER_PACKET_SIZE
from cozydeploy.exceptions import (
    AuthenticationError,
    LocalFileError,
    RemoteCommandError,
    SSHConnectionError,
    TransferError,
)
from cozydeploy.models.credentials import Credential
from cozydeploy.models.results import SSHResult

PathLike = Union[str, Path]


class RemoteSession:
    """
    Authenticated SSH access to one host.

    Every call opens its own transport and tears it down before
    returning, so a failure never leaks into the next call.
    """

    def __init__(
        self,
        credential: Credential,
        connect_timeout: Optional[float] = SSH_CONNECTION_TIMEOUT,
        packet_size: int = TRANSFER_PACKET_SIZE,
    ):
        """
        Initialize remote session.

        Args:
            credential: Address, user and password of the host
            connect_timeout: TCP/SSH handshake timeout in seconds
            packet_size: SFTP packet and local read chunk size in bytes
        """
        self.credential = credential
        self.connect_timeout = connect_timeout
        self.packet_size = packet_size

    @property
    def host(self) -> str:
        return self.credential.address

    def _connect(self) -> paramiko.SSHClient:
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                self.credential.address,
                port=self.credential.port,
                username=self.credential.user,
                password=self.credential.secret,
                timeout=self.connect_timeout,
                allow_agent=False,
                look_for_keys=False,
            )
        except paramiko.AuthenticationException as e:
            client.close()
            raise AuthenticationError(
                self.credential.user, self.credential.address, detail=str(e)
            )
        except (paramiko.SSHException, socket.error) as e:
            client.close()
            raise SSHConnectionError(
                f"Could not connect to {self.credential.address}:{self.credential.port}",
                context=str(e),
            )
        return client

    @contextmanager
    def _client(self) -> Iterator[paramiko.SSHClient]:
        client = self._connect()
        try:
            yield client
        finally:
            client.close()

    @contextmanager
    def _sftp(self) -> Iterator[paramiko.SFTPClient]:
        with self._client() as client:
            try:
                sftp = paramiko.SFTPClient.from_transport(
                    client.get_transport(), max_packet_size=self.packet_size
                )
            except paramiko.SSHException as e:
                raise SSHConnectionError(
                    f"Could not open SFTP channel on {self.host}", context=str(e)
                )
            try:
                yield sftp
            finally:
                sftp.close()

    def transfer(self, source: PathLike, destination: str) -> int:
        """
        Copy a local file to the host (like scp).

        Args:
            source: Local file path
            destination: Remote file path

        Returns:
            Number of bytes copied

        Raises:
            SSHConnectionError: If the host cannot be reached or rejects the login
            LocalFileError: If the source file can't be read (nothing is sent)
            TransferError: If the remote file can't be written or is truncated
        """
        source = Path(source)
        try:
            expected = source.stat().st_size
        except OSError as e:
            raise LocalFileError(f"Cannot read local file {source}", context=str(e))

        with self._sftp() as sftp:
            try:
                with open(source, "rb") as local, sftp.open(destination, "wb") as remote:
                    remote.set_pipelined(True)
                    copied = _copy_stream(local, remote, self.packet_size)
                written = sftp.stat(destination).st_size
            except (IOError, OSError, paramiko.SSHException) as e:
                raise TransferError(
                    f"Copy of {source} to {self.host}:{destination} failed",
                    context=str(e),
                )

        if copied != expected or written != expected:
            raise TransferError(
                f"Copy of {source} to {self.host}:{destination} is truncated",
                context=f"expected {expected} bytes, wrote {written}",
            )
        return copied

    def fetch(self, source: str, destination: PathLike) -> int:
        """
        Copy a remote file to the local filesystem.

        Args:
            source: Remote file path
            destination: Local file path

        Returns:
            Number of bytes copied
        """
        destination = Path(destination)
        with self._sftp() as sftp:
            try:
                expected = sftp.stat(source).st_size
                with sftp.open(source, "rb") as remote, open(destination, "wb") as local:
                    remote.prefetch(expected)
                    copied = _copy_stream(remote, local, self.packet_size)
            except (IOError, OSError, paramiko.SSHException) as e:
                raise TransferError(
                    f"Copy of {self.host}:{source} to {destination} failed",
                    context=str(e),
                )

        if copied != expected:
            raise TransferError(
                f"Copy of {self.host}:{source} is truncated",
                context=f"expected {expected} bytes, read {copied}",
            )
        return copied

    def run(
        self, command: str, on_line: Optional[Callable[[str], None]] = None
    ) -> SSHResult:
        """
        Execute command on the host and wait for it to exit.

        stderr is merged into stdout. A non-zero exit status is reported
        in the result, not raised.

        Args:
            command: Shell command line
            on_line: Called with each output line as it arrives

        Returns:
            SSHResult with combined output and exit status

        Raises:
            SSHConnectionError: If the host cannot be reached or rejects the login
            RemoteCommandError: If the session breaks before the command exits
        """
        start_time = time.time()
        lines = []

        with self._client() as client:
            try:
                channel = client.get_transport().open_session()
                channel.set_combine_stderr(True)
                channel.exec_command(command)
                with channel.makefile("rb") as stdout:
                    for raw in stdout:
                        line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
                        lines.append(line)
                        if on_line:
                            on_line(line)
                returncode = channel.recv_exit_status()
            except (paramiko.SSHException, socket.error) as e:
                raise RemoteCommandError(
                    f"SSH command failed: {e}",
                    context=f"Host: {self.host}, Command: {command}",
                )

        return SSHResult(
            returncode=returncode,
            stdout="\n".join(lines),
            host=self.host,
            command=command,
            duration_seconds=time.time() - start_time,
        )

    def __repr__(self) -> str:
        return f"RemoteSession({self.credential.connection_string})"


def _copy_stream(reader, writer, chunk_size: int) -> int:
    copied = 0
    while True:
        chunk = reader.read(chunk_size)
        if not chunk:
            break
        writer.write(chunk)
        copied += len(chunk)
    return copied

