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

import sys
sys.dont_write_bytecode = True

import unittest

from qdb_ilp import ErrorCode, SenderError, parse_address, parse_conf


class TestParseAddress(unittest.TestCase):
    def test_host_and_port(self):
        self.assertEqual(parse_address('localhost:9000'), ('localhost', 9000))
        self.assertEqual(parse_address('10.0.0.1:1'), ('10.0.0.1', 1))

    def test_default_port(self):
        self.assertEqual(parse_address('localhost'), ('localhost', 9009))
        self.assertEqual(parse_address('localhost:'), ('localhost', 9009))

    def test_ipv6(self):
        self.assertEqual(parse_address('[::1]:9000'), ('::1', 9000))
        self.assertEqual(parse_address('[::1]'), ('::1', 9009))
        self.assertEqual(parse_address('fe80::1'), ('fe80::1', 9009))

    def test_bad_addresses(self):
        for address in ('', ':9009', 'host:http', 'host:0', 'host:65536', '[::1', '[::1]x'):
            with self.subTest(address=address):
                with self.assertRaisesRegex(SenderError, 'Bad address') as cm:
                    parse_address(address)
                self.assertEqual(cm.exception.code, ErrorCode.CONFIG_ERROR)


class TestParseConf(unittest.TestCase):
    def test_addr_only(self):
        self.assertEqual(
            parse_conf('tcp::addr=localhost:9009;'),
            {'address': 'localhost:9009'})

    def test_trailing_semicolon_optional(self):
        self.assertEqual(
            parse_conf('tcp::addr=localhost:9009'),
            {'address': 'localhost:9009'})

    def test_init_buf_size(self):
        self.assertEqual(
            parse_conf('tcp::init_buf_size=65536;addr=db:9009;'),
            {'address': 'db:9009', 'init_buf_size': 65536})

    def test_escaped_semicolon(self):
        self.assertEqual(
            parse_conf('tcp::addr=a;;b;;;'),
            {'address': 'a;b;'})

    def test_errors(self):
        cases = [
            ('addr=localhost:9009;', r'missing `::`'),
            ('http::addr=localhost:9000;', r"Unsupported protocol 'http'"),
            ('tcps::addr=localhost:9009;', r"Unsupported protocol 'tcps'"),
            ('tcp::init_buf_size=10;', r'Missing `addr`'),
            ('tcp::addr=a;init_buf_size=big;', r'Bad `init_buf_size`'),
            ('tcp::addr=a;username=joe;', r'Unknown parameters: username'),
            ('tcp::addr=a;addr=b;', r"Duplicate key 'addr'"),
            ('tcp::addr=a;flag;', r"Missing `=` after key 'flag;'"),
            ('tcp::=a;', r'Empty key')]
        for conf, pattern in cases:
            with self.subTest(conf=conf):
                with self.assertRaisesRegex(SenderError, pattern) as cm:
                    parse_conf(conf)
                self.assertEqual(cm.exception.code, ErrorCode.CONFIG_ERROR)


if __name__ == '__main__':
    unittest.main()
