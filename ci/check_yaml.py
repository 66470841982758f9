#!/usr/bin/env python3
import sys
sys.dont_write_bytecode = True
import pathlib
import yaml

PROJ_ROOT = pathlib.Path(__file__).absolute().parent.parent

paths = [
    'examples.manifest.yaml',
]


for path in paths:
    sys.stdout.write(f'loading {path}  ')
    with open(PROJ_ROOT / path, 'r') as file:
        entries = yaml.load(file, Loader=yaml.SafeLoader)
    for entry in entries:
        example_path = PROJ_ROOT / entry['path']
        if not example_path.is_file():
            sys.stdout.write(f'  ..missing {entry["path"]}\n')
            sys.exit(1)
    sys.stdout.write('  ..ok\n')
