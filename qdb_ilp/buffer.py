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

"""
Encoding of InfluxDB Line Protocol (ILP) rows.

A row is composed by calling `table`, then any number of `symbol`,
then any number of column methods, and finalized by `at` or `at_now`:

    table_name[,sym=val...][ col=val[,col=val...]][ timestamp]\\n

The builder methods never raise. The first error of a row is kept
aside, later calls for that row become no-ops, and the error is raised
by the next `at` / `at_now` call which also discards the partial row.
"""

import datetime
import numbers
import operator
import time
from typing import Optional, Union

import numpy

from .errors import ErrorCode, SenderError


DEFAULT_BUF_CAPACITY = 32 * 1024

_BACKSLASH = ord('\\')
_NEW_LINE = ord('\n')
_CARRIAGE_RETURN = ord('\r')

_ILLEGAL_NAME_CHARS = frozenset(b'.?,:\\/\x00)(+*~%-')
_ESCAPED_NAME_CHARS = frozenset(b' ="')
_ESCAPED_UNQUOTED_CHARS = frozenset(b' ,="\\')
_ESCAPED_QUOTED_CHARS = frozenset(b'"\\')

_EPOCH = datetime.datetime(1970, 1, 1, tzinfo=datetime.timezone.utc)


def _fully_qual_name(obj):
    ty = type(obj)
    module = ty.__module__
    qn = ty.__qualname__
    if module == 'builtins':
        return qn
    else:
        return module + '.' + qn


class TimestampNanos:
    """Nanoseconds since the Unix epoch."""
    def __init__(self, nanos: int):
        self.value = nanos

    @classmethod
    def now(cls):
        return cls(time.time_ns())

    @classmethod
    def from_datetime(cls, dt: datetime.datetime):
        """
        Convert a `datetime`. Naive datetimes are taken to be in UTC.
        """
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=datetime.timezone.utc)
        delta = dt - _EPOCH
        seconds = delta.days * 86400 + delta.seconds
        return cls(seconds * 1_000_000_000 + delta.microseconds * 1000)

    def __repr__(self):
        return f'TimestampNanos({self.value})'


def _encode(text, what: str) -> bytes:
    if not isinstance(text, str):
        raise SenderError(
            ErrorCode.INVALID_API_CALL,
            f'Bad {what} of type {_fully_qual_name(text)}: Expected `str`.')
    try:
        return text.encode('utf-8')
    except UnicodeEncodeError as uee:
        raise SenderError(
            ErrorCode.INVALID_VALUE,
            f'Bad {what} {text!r}: {uee}') from uee


def _escape_name(name: str) -> bytes:
    # Only ASCII chars are special, so bytes can be inspected one at a
    # time without decoding multi-byte UTF-8 sequences.
    out = bytearray()
    for b in _encode(name, 'table or column name'):
        if b == _NEW_LINE:
            raise SenderError(
                ErrorCode.INVALID_NAME,
                f'New line chars are not allowed in table or column names: {name!r}')
        elif b == _CARRIAGE_RETURN:
            raise SenderError(
                ErrorCode.INVALID_NAME,
                f'Carriage return chars are not allowed in table or column names: {name!r}')
        elif b in _ILLEGAL_NAME_CHARS:
            raise SenderError(
                ErrorCode.INVALID_NAME,
                'Table or column name contains one of illegal chars: '
                "'.', '?', ',', ':', '\\', '/', '\\0', ')', '(', '+', "
                f"'*', '~', '%', '-': {name!r}")
        elif b in _ESCAPED_NAME_CHARS:
            out.append(_BACKSLASH)
        out.append(b)
    return bytes(out)


def _escape_value(value: str, quoted: bool) -> bytes:
    escaped = _ESCAPED_QUOTED_CHARS if quoted else _ESCAPED_UNQUOTED_CHARS
    out = bytearray()
    for b in _encode(value, 'string value'):
        if b == _NEW_LINE:
            raise SenderError(
                ErrorCode.INVALID_VALUE,
                f'New line chars are not allowed in string values: {value!r}')
        elif b == _CARRIAGE_RETURN:
            raise SenderError(
                ErrorCode.INVALID_VALUE,
                f'Carriage return chars are not allowed in string values: {value!r}')
        elif b in escaped:
            out.append(_BACKSLASH)
        out.append(b)
    return bytes(out)


def _bad_value(kind: str, expected: str, value) -> SenderError:
    return SenderError(
        ErrorCode.INVALID_API_CALL,
        f'Bad {kind} column value of type {_fully_qual_name(value)}: '
        f'Expected {expected}.')


def _timestamp_nanos(timestamp) -> int:
    if isinstance(timestamp, TimestampNanos):
        return timestamp.value
    elif isinstance(timestamp, datetime.datetime):
        return TimestampNanos.from_datetime(timestamp).value
    try:
        return operator.index(timestamp)
    except TypeError:
        raise SenderError(
            ErrorCode.INVALID_API_CALL,
            f'Bad timestamp of type {_fully_qual_name(timestamp)}: '
            'Expected `int`, `TimestampNanos` or `datetime`.') from None


class Buffer:
    """
    Accumulates ILP rows until they are sent.

    `init_buf_size` is a soft capacity: rows are never rejected for
    exceeding it, but `capacity` is brought back down to it once the
    pending rows have been sent. Not safe for concurrent use.
    """
    def __init__(self, init_buf_size: int = DEFAULT_BUF_CAPACITY):
        if init_buf_size <= 0:
            raise ValueError(
                f'init_buf_size must be positive, not {init_buf_size}')
        self._init_buf_size = init_buf_size
        self._buf = bytearray()
        self._capacity = init_buf_size
        # Start of the row being built. Everything before it is complete.
        self._msg_pos = 0
        self._error: Optional[SenderError] = None
        self._has_table = False
        self._has_fields = False

    def __len__(self):
        return len(self._buf)

    def __str__(self):
        # A partial write may have left a truncated UTF-8 sequence at the front.
        return self._buf.decode('utf-8', errors='backslashreplace')

    @property
    def init_buf_size(self) -> int:
        return self._init_buf_size

    @property
    def capacity(self) -> int:
        """Bytes currently reserved for the buffer."""
        return self._capacity

    @property
    def committed_size(self) -> int:
        """Bytes of complete rows, i.e. what a flush would send."""
        return self._msg_pos

    def peek(self) -> bytes:
        return bytes(self._buf)

    def clear(self):
        """Drop all rows, including a partially built one."""
        self._buf = bytearray()
        self._capacity = self._init_buf_size
        self._msg_pos = 0
        self._error = None
        self._has_table = False
        self._has_fields = False

    def _write(self, data: bytes):
        self._buf += data
        while len(self._buf) > self._capacity:
            self._capacity *= 2

    def _guarded(self, fn, *args):
        if self._error is None:
            try:
                fn(*args)
            except SenderError as e:
                self._error = e
        return self

    def _check_table(self):
        if not self._has_table:
            raise SenderError(
                ErrorCode.INVALID_API_CALL,
                'Table name was not provided.')

    def _write_column(self, name: str, value: bytes):
        self._check_table()
        sep = b',' if self._has_fields else b' '
        self._write(sep + _escape_name(name) + b'=' + value)
        self._has_fields = True

    def _table(self, name):
        if self._has_table:
            raise SenderError(
                ErrorCode.INVALID_API_CALL,
                'Table name already provided.')
        self._write(_escape_name(name))
        self._has_table = True

    def _symbol(self, name, value):
        self._check_table()
        if self._has_fields:
            raise SenderError(
                ErrorCode.INVALID_API_CALL,
                'Symbols must be written before any other column.')
        self._write(
            b',' + _escape_name(name) + b'=' +
            _escape_value(value, quoted=False))

    def _int_column(self, name, value):
        try:
            value = operator.index(value)
        except TypeError:
            raise _bad_value('int', '`int`', value) from None
        try:
            encoded = b'%di' % value
        except ValueError as e:
            raise SenderError(
                ErrorCode.INVALID_VALUE,
                f'Bad int column value: {e}.') from e
        self._write_column(name, encoded)

    def _float_column(self, name, value):
        if not isinstance(value, numbers.Real):
            raise _bad_value('float', '`float`', value)
        try:
            value = float(value)
        except (OverflowError, ValueError, TypeError) as e:
            raise SenderError(
                ErrorCode.INVALID_VALUE,
                f'Bad float column value of type {_fully_qual_name(value)}: {e}.') from e
        self._write_column(name, b'%f' % value)

    def _string_column(self, name, value):
        if not isinstance(value, str):
            raise _bad_value('string', '`str`', value)
        self._write_column(
            name, b'"' + _escape_value(value, quoted=True) + b'"')

    def _bool_column(self, name, value):
        if not isinstance(value, (bool, numpy.bool_)):
            raise _bad_value('bool', '`bool`', value)
        self._write_column(name, b't' if value else b'f')

    def table(self, name: str):
        """Start a new row for the table `name`."""
        return self._guarded(self._table, name)

    def symbol(self, name: str, value: str):
        """Add a symbol column. Must precede all other columns."""
        return self._guarded(self._symbol, name, value)

    def int_column(self, name: str, value: int):
        return self._guarded(self._int_column, name, value)

    def float_column(self, name: str, value: float):
        return self._guarded(self._float_column, name, value)

    def string_column(self, name: str, value: str):
        return self._guarded(self._string_column, name, value)

    def bool_column(self, name: str, value: bool):
        return self._guarded(self._bool_column, name, value)

    def column(
            self, name: str,
            value: Union[bool, int, float, str]):
        """
        Add a column, picking its type from the type of `value`.
        NumPy boolean, integer and floating point scalars are accepted.
        """
        if isinstance(value, (bool, numpy.bool_)):
            return self.bool_column(name, value)
        elif isinstance(value, (int, numpy.integer)):
            return self.int_column(name, value)
        elif isinstance(value, (float, numpy.floating)):
            return self.float_column(name, value)
        elif isinstance(value, str):
            return self.string_column(name, value)
        if self._error is None:
            fqn = _fully_qual_name(value)
            self._error = SenderError(
                ErrorCode.INVALID_API_CALL,
                f'Bad column value of type {fqn}: Expected one of '
                '`bool`, `int`, `float` or `str`.')
        return self

    def _rollback(self):
        del self._buf[self._msg_pos:]
        self._has_table = False
        self._has_fields = False

    def _take_error(self) -> Optional[SenderError]:
        """
        Clear and return the pending error, if any, discarding the
        row it was recorded for.
        """
        err = self._error
        self._error = None
        if err is not None:
            self._rollback()
        return err

    def at(self, timestamp: Union[int, TimestampNanos, datetime.datetime]):
        """
        Finalize the row with a designated timestamp in epoch
        nanoseconds. A negative timestamp is omitted, leaving the
        server to assign one.

        Raises the first error recorded while building the row, in
        which case the row is discarded. Either way the buffer is
        ready for a new row afterwards.
        """
        try:
            err = self._take_error()
            if err is not None:
                raise err
            self._check_table()
            nanos = _timestamp_nanos(timestamp)
            try:
                line_end = b' %d\n' % nanos if nanos >= 0 else b'\n'
            except ValueError as e:
                raise SenderError(
                    ErrorCode.INVALID_API_CALL,
                    f'Bad timestamp: {e}.') from e
        except SenderError:
            self._rollback()
            raise
        self._write(line_end)
        self._msg_pos = len(self._buf)
        self._has_table = False
        self._has_fields = False

    def at_now(self):
        """Finalize the row without a timestamp."""
        self.at(-1)

    # Used by `Sender.flush`.

    def _pending(self) -> bytes:
        """The complete rows, ready to be sent."""
        return bytes(self._buf[:self._msg_pos])

    def _consume(self, size: int):
        """Drop `size` sent bytes from the front of the buffer."""
        del self._buf[:size]
        self._msg_pos -= size

    def _shrink(self):
        """Bring `capacity` back down to `init_buf_size` after a flush."""
        if self._capacity > self._init_buf_size:
            self._buf = bytearray(self._buf)
            self._capacity = self._init_buf_size
            while len(self._buf) > self._capacity:
                self._capacity *= 2
