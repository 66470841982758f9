import sys

from qdb_ilp import Sender, SenderError, TimestampNanos


def example(host: str = 'localhost', port: int = 9009):
    try:
        with Sender(f'{host}:{port}') as sender:
            # Record with provided designated timestamp (using the 'at' param)
            # Notice the designated timestamp is expected in Nanoseconds.
            (sender
             .table('trades')
             .symbol('symbol', 'ETH-USD')
             .symbol('side', 'sell')
             .float_column('price', 2615.54)
             .float_column('amount', 0.00044)
             .at(TimestampNanos.now()))

            # Rows accumulate in the sender's buffer: flush them explicitly.
            # `close()` alone would drop them.
            sender.flush()
    except SenderError as e:
        sys.stderr.write(f'Got error: {e}\n')
        return False
    return True


if __name__ == '__main__':
    sys.exit(0 if example(*sys.argv[1:]) else 1)
