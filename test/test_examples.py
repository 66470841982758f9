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

import os
import pathlib
import subprocess
import unittest

import yaml

from mock_server import MockServer


PROJ_ROOT = pathlib.Path(__file__).absolute().parent.parent
MANIFEST_PATH = PROJ_ROOT / 'examples.manifest.yaml'


def load_manifest():
    with open(MANIFEST_PATH, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f)


class TestExamples(unittest.TestCase):
    def test_manifest_yaml(self):
        manifest = load_manifest()
        self.assertIsInstance(manifest, list)
        names = [entry['name'] for entry in manifest]
        self.assertEqual(len(names), len(set(names)))
        for entry in manifest:
            with self.subTest(name=entry['name']):
                self.assertEqual(entry['lang'], 'python')
                self.assertTrue((PROJ_ROOT / entry['path']).is_file())

    def test_examples(self):
        env = dict(os.environ)
        env['PYTHONPATH'] = os.pathsep.join(
            filter(None, [str(PROJ_ROOT), env.get('PYTHONPATH')]))
        for entry in load_manifest():
            with self.subTest(name=entry['name']):
                with MockServer() as server:
                    args = [
                        arg.format(host='127.0.0.1', port=server.port)
                        for arg in entry['args']]
                    subprocess.check_call(
                        [sys.executable, str(PROJ_ROOT / entry['path'])] + args,
                        cwd=str(PROJ_ROOT),
                        env=env,
                        timeout=60)
                    server.wait_closed()
                    lines = server.received().decode('utf-8').splitlines()
                self.assertTrue(lines)
                for line in lines:
                    self.assertTrue(line.startswith(entry['table'] + ','), line)


if __name__ == '__main__':
    unittest.main()
