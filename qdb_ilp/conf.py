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
Sender configuration.

A configuration string names the protocol followed by `key=value;`
pairs, for example::

    tcp::addr=localhost:9009;init_buf_size=65536;

A literal `;` inside a value is written as `;;`.
"""

import logging
import os
from typing import Dict, Tuple

from .errors import ErrorCode, SenderError


DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 9009
DEFAULT_ADDRESS = f'{DEFAULT_HOST}:{DEFAULT_PORT}'

CONF_ENV_VAR = 'QDB_CLIENT_CONF'

logger = logging.getLogger(__name__)


def _config_error(msg: str) -> SenderError:
    return SenderError(ErrorCode.CONFIG_ERROR, msg)


def parse_address(address: str) -> Tuple[str, int]:
    """
    Split a `host:port` address. The port defaults to 9009.
    IPv6 hosts with a port must be bracketed: `[::1]:9009`.
    """
    if address.startswith('['):
        host, sep, rest = address[1:].partition(']')
        if not sep:
            raise _config_error(f'Bad address {address!r}: missing `]`.')
        if rest and not rest.startswith(':'):
            raise _config_error(f'Bad address {address!r}.')
        port = rest[1:]
    elif address.count(':') > 1:
        host, port = address, ''
    else:
        host, _, port = address.partition(':')
    if not host:
        raise _config_error(f'Bad address {address!r}: missing host.')
    if not port:
        return host, DEFAULT_PORT
    try:
        port_num = int(port)
    except ValueError:
        raise _config_error(
            f'Bad address {address!r}: port {port!r} is not a number.') from None
    if not 0 < port_num < 65536:
        raise _config_error(
            f'Bad address {address!r}: port {port_num} out of range.')
    return host, port_num


def _parse_params(text: str) -> Dict[str, str]:
    params = {}
    pos = 0
    while pos < len(text):
        eq = text.find('=', pos)
        if eq == -1:
            raise _config_error(f'Missing `=` after key {text[pos:]!r}.')
        key = text[pos:eq]
        if not key:
            raise _config_error(f'Empty key at position {pos}.')
        value = []
        pos = eq + 1
        while pos < len(text):
            if text[pos] == ';':
                if text.startswith(';;', pos):
                    value.append(';')
                    pos += 2
                    continue
                pos += 1
                break
            value.append(text[pos])
            pos += 1
        if key in params:
            raise _config_error(f'Duplicate key {key!r}.')
        params[key] = ''.join(value)
    return params


def parse_conf(conf: str) -> Dict[str, object]:
    """
    Parse a configuration string into `Sender` keyword arguments.
    """
    protocol, sep, rest = conf.partition('::')
    if not sep:
        raise _config_error(
            f'Bad configuration string {conf!r}: missing `::` after protocol.')
    if protocol != 'tcp':
        raise _config_error(
            f'Unsupported protocol {protocol!r}: only `tcp` is supported.')
    params = _parse_params(rest)
    if 'addr' not in params:
        raise _config_error('Missing `addr` parameter.')
    kwargs = {'address': params.pop('addr')}
    if 'init_buf_size' in params:
        value = params.pop('init_buf_size')
        try:
            kwargs['init_buf_size'] = int(value)
        except ValueError:
            raise _config_error(
                f'Bad `init_buf_size` {value!r}: not a number.') from None
    if params:
        keys = ', '.join(sorted(params))
        raise _config_error(f'Unknown parameters: {keys}.')
    logger.debug('Parsed configuration: %r', kwargs)
    return kwargs


def conf_from_env() -> str:
    conf = os.environ.get(CONF_ENV_VAR)
    if not conf:
        raise _config_error(f'Environment variable {CONF_ENV_VAR} not set.')
    return conf
