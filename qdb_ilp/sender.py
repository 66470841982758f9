################################################################################
##     ___                  _   ____  ____
##    / _ \ _   _  ___  ___| |_|  _ \| __ )
##   | | | | | | |/ _ \/ __| __| | | |  _ \
##   | |_| | |_| |  __/\__ \ |_| |_| | |_) |
##    \__\_\\__,_|\___||___/\__|____/|____/
##
##  Copyright (c) 2014-2019 Appsicle
##  Copyright (c) 2019-2025 QuestDB
##
##  Licensed under the Apache License, Version 2.0 (the "License");
##  you may not use this file except in compliance with the License.
##  You may obtain a copy of the License at
##
##  http://www.apache.org/licenses/LICENSE-2.0
##
##  Unless required by applicable law or agreed to in writing, software
##  distributed under the License is distributed on an "AS IS" BASIS,
##  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
##  See the License for the specific language governing permissions and
##  limitations under the License.
##
################################################################################

import datetime
import logging
import socket
import threading
import time
from typing import Optional, Union

from .buffer import Buffer, DEFAULT_BUF_CAPACITY, TimestampNanos
from .conf import DEFAULT_ADDRESS, conf_from_env, parse_address, parse_conf
from .errors import ErrorCode, SenderError


logger = logging.getLogger(__name__)


class Sender:
    """
    Inserts rows into QuestDB by sending ILP messages over a single
    TCP connection.

    Rows are accumulated in a `Buffer` and sent by `flush`, which
    should be called periodically rather than after every row. `at`
    and `at_now` also flush once the buffer grows beyond
    `init_buf_size` bytes.

    A sender must not be used concurrently from multiple threads.
    """
    def __init__(
            self,
            address: str = DEFAULT_ADDRESS,
            *,
            init_buf_size: int = DEFAULT_BUF_CAPACITY):
        self._host, self._port = parse_address(address)
        if init_buf_size <= 0:
            logger.warning(
                'Ignoring non-positive init_buf_size %d, using %d.',
                init_buf_size, DEFAULT_BUF_CAPACITY)
            init_buf_size = DEFAULT_BUF_CAPACITY
        self._buffer = Buffer(init_buf_size)
        self._sock = None

    @classmethod
    def from_conf(cls, conf: str):
        """Create a sender from a configuration string."""
        return cls(**parse_conf(conf))

    @classmethod
    def from_env(cls):
        """
        Create a sender from the configuration string held by the
        `QDB_CLIENT_CONF` environment variable.
        """
        return cls.from_conf(conf_from_env())

    @property
    def address(self) -> str:
        if ':' in self._host:
            return f'[{self._host}]:{self._port}'
        return f'{self._host}:{self._port}'

    @property
    def init_buf_size(self) -> int:
        return self._buffer.init_buf_size

    @property
    def buffer(self) -> Buffer:
        return self._buffer

    @property
    def pending_size(self) -> int:
        return len(self._buffer)

    def messages(self) -> str:
        """The buffered ILP text not yet sent. For debugging."""
        return str(self._buffer)

    def connect(self, timeout: Optional[float] = None):
        if self._sock is not None:
            raise SenderError(ErrorCode.INVALID_API_CALL, 'Already connected.')
        try:
            sock = socket.create_connection(
                (self._host, self._port), timeout=timeout)
        except OSError as ose:
            raise SenderError(
                ErrorCode.SOCKET_ERROR,
                f'Failed to connect to server at {self.address}: {ose}') from ose
        sock.settimeout(None)
        self._sock = sock
        logger.debug('Connected to %s.', self.address)

    def __enter__(self):
        self.connect()
        return self

    def _check_connected(self):
        if self._sock is None:
            raise SenderError(ErrorCode.SOCKET_ERROR, 'Not connected.')

    def table(self, name: str):
        self._buffer.table(name)
        return self

    def symbol(self, name: str, value: str):
        self._buffer.symbol(name, value)
        return self

    def int_column(self, name: str, value: int):
        self._buffer.int_column(name, value)
        return self

    def float_column(self, name: str, value: float):
        self._buffer.float_column(name, value)
        return self

    def string_column(self, name: str, value: str):
        self._buffer.string_column(name, value)
        return self

    def bool_column(self, name: str, value: bool):
        self._buffer.bool_column(name, value)
        return self

    def column(self, name: str, value: Union[bool, int, float, str]):
        self._buffer.column(name, value)
        return self

    def at(
            self,
            timestamp: Union[int, TimestampNanos, datetime.datetime],
            *,
            timeout: Optional[float] = None,
            cancel: Optional[threading.Event] = None):
        """
        Finalize the row, see `Buffer.at`. If this takes the buffer
        past `init_buf_size` bytes, the buffer is also flushed with the
        given `timeout` and `cancel` event.
        """
        self._buffer.at(timestamp)
        if len(self._buffer) > self._buffer.init_buf_size:
            self.flush(timeout=timeout, cancel=cancel)

    def at_now(
            self,
            *,
            timeout: Optional[float] = None,
            cancel: Optional[threading.Event] = None):
        self.at(-1, timeout=timeout, cancel=cancel)

    def flush(
            self,
            *,
            timeout: Optional[float] = None,
            cancel: Optional[threading.Event] = None):
        """
        Send all complete rows. A row still being built stays buffered.

        Only rows finalized by `at` or `at_now` are written. A partially
        built row never goes on the wire, so a row that later fails
        cannot leave a corrupt line on the server.

        `timeout` bounds the time spent writing, in seconds. Nothing is
        sent if `cancel` is already set or the timeout is not positive.
        A failed write is not retried: the bytes that did reach the
        socket are dropped from the buffer, so calling `flush` again
        resumes where the failed call stopped.
        """
        err = self._buffer._take_error()
        if err is not None:
            raise err
        self._check_connected()
        if cancel is not None and cancel.is_set():
            raise SenderError(ErrorCode.CANCELLED, 'Flush cancelled.')
        deadline = None
        if timeout is not None:
            if timeout <= 0:
                raise SenderError(
                    ErrorCode.DEADLINE_EXCEEDED, 'Flush deadline exceeded.')
            deadline = time.monotonic() + timeout
        else:
            self._sock.settimeout(None)

        data = self._buffer._pending()
        view = memoryview(data)
        sent = 0
        try:
            while sent < len(data):
                if deadline is not None:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise socket.timeout('timed out')
                    self._sock.settimeout(remaining)
                sent += self._sock.send(view[sent:])
        except OSError as ose:
            self._buffer._consume(sent)
            code = (ErrorCode.DEADLINE_EXCEEDED
                    if isinstance(ose, socket.timeout)
                    else ErrorCode.SOCKET_ERROR)
            raise SenderError(
                code,
                f'Could not flush buffer: {ose} '
                f'({sent} of {len(data)} bytes sent).') from ose
        self._buffer._consume(sent)
        self._buffer._shrink()
        logger.debug('Flushed %d bytes to %s.', sent, self.address)

    def close(self):
        """
        Close the connection. Does not flush: rows not yet sent are
        lost unless `flush` is called first.
        """
        if self._sock is not None:
            sock, self._sock = self._sock, None
            sock.close()
            logger.debug(
                'Closed connection to %s with %d bytes unsent.',
                self.address, len(self._buffer))

    def __exit__(self, exc_type, _exc_val, _exc_tb):
        try:
            if exc_type is None:
                self.flush()
        finally:
            self.close()
