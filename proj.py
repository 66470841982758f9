#!/usr/bin/env python3

import sys
sys.dont_write_bytecode = True
import pathlib
import shutil
import shlex
import subprocess
import os


PROJ_ROOT = pathlib.Path(__file__).parent


def _run(*args, env=None, cwd=None):
    """
    Log and run a command within the project dir.
    On error, exit with child's return code.
    """
    args = [str(arg) for arg in args]
    cwd = cwd or PROJ_ROOT
    sys.stderr.write('[CMD] ')
    if env is not None:
        env_str = ' '.join(f'{k}={shlex.quote(v)}' for k, v in env.items())
        sys.stderr.write(f'{env_str} ')
        env = {**os.environ, **env}
    escaped_cmd = ' '.join(shlex.quote(arg) for arg in args)
    sys.stderr.write(f'{escaped_cmd}\n')
    ret_code = subprocess.run(args, cwd=str(cwd), env=env).returncode
    if ret_code != 0:
        sys.exit(ret_code)


def _rmtree(path: pathlib.Path):
    if not path.exists():
        return
    sys.stderr.write(f'[RMTREE] {path}\n')
    shutil.rmtree(path, ignore_errors=True)


COMMANDS = []


def command(fn):
    COMMANDS.append(fn.__name__)
    return fn


@command
def clean():
    _rmtree(PROJ_ROOT / 'build')
    _rmtree(PROJ_ROOT / 'dist')
    for path in PROJ_ROOT.glob('*.egg-info'):
        _rmtree(path)
    for path in PROJ_ROOT.glob('**/__pycache__'):
        _rmtree(path)


@command
def lint_yaml():
    _run(sys.executable, PROJ_ROOT / 'ci' / 'check_yaml.py')


@command
def test():
    _run(sys.executable, PROJ_ROOT / 'ci' / 'run_all_tests.py')


@command
def example(name='line_sender_example', *args):
    """Run an example against a live QuestDB, e.g. `example from_conf`."""
    _run(
        sys.executable,
        PROJ_ROOT / 'examples' / f'{name}.py',
        *args,
        env={'PYTHONPATH': str(PROJ_ROOT)})


@command
def all():
    clean()
    lint_yaml()
    test()


def main():
    if len(sys.argv) < 2:
        sys.stderr.write('Usage: python3 proj.py <command>\n')
        sys.stderr.write('Commands:\n')
        for command in COMMANDS:
            sys.stderr.write(f'  {command}\n')
        sys.stderr.write('\n')
        sys.exit(0)
    fn = sys.argv[1]
    args = list(sys.argv)[2:]
    globals()[fn](*args)


if __name__ == '__main__':
    main()
