import sys

from qdb_ilp import Sender, SenderError


def example(conf: str = 'tcp::addr=localhost:9009;init_buf_size=65536;'):
    try:
        with Sender.from_conf(conf) as sender:
            for side, price in (('buy', 2615.12), ('sell', 2615.54)):
                (sender
                 .table('trades')
                 .symbol('symbol', 'ETH-USD')
                 .symbol('side', side)
                 .column('price', price)
                 .column('filled', True)
                 .at_now())

            # Leaving the `with` block without an exception flushes any
            # remaining rows before closing the connection.
    except SenderError as e:
        sys.stderr.write(f'Got error: {e}\n')
        return False
    return True


if __name__ == '__main__':
    sys.exit(0 if example(*sys.argv[1:]) else 1)
