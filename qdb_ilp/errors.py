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

from enum import Enum


class ErrorCode(Enum):
    """Category of a `SenderError`."""
    SOCKET_ERROR = 1
    INVALID_API_CALL = 2
    INVALID_NAME = 3
    INVALID_VALUE = 4
    CONFIG_ERROR = 5
    DEADLINE_EXCEEDED = 6
    CANCELLED = 7


class SenderError(Exception):
    """An error whilst using the line sender."""
    def __init__(self, code: ErrorCode, msg: str):
        super().__init__(msg)
        self._code = code

    @property
    def code(self) -> ErrorCode:
        return self._code
