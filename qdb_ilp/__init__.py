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
Pure-Python InfluxDB Line Protocol (ILP) sender for QuestDB over TCP.

    from qdb_ilp import Sender

    with Sender('localhost:9009') as sender:
        (sender
         .table('trades')
         .symbol('symbol', 'ETH-USD')
         .float_column('price', 2615.54)
         .at_now())
"""

from .buffer import Buffer, DEFAULT_BUF_CAPACITY, TimestampNanos
from .conf import CONF_ENV_VAR, DEFAULT_ADDRESS, parse_address, parse_conf
from .errors import ErrorCode, SenderError
from .sender import Sender

__version__ = '0.1.0'

__all__ = [
    'Buffer',
    'CONF_ENV_VAR',
    'DEFAULT_ADDRESS',
    'DEFAULT_BUF_CAPACITY',
    'ErrorCode',
    'Sender',
    'SenderError',
    'TimestampNanos',
    'parse_address',
    'parse_conf']
