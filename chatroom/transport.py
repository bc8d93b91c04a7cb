from websockets.exceptions import ConnectionClosed, ConnectionClosedOK
from websockets.frames import CloseCode

# Close conditions treated as a clean disconnect rather than an error.
EXPECTED_CLOSE_CODES = frozenset(
    {
        CloseCode.NORMAL_CLOSURE,
        CloseCode.GOING_AWAY,
        CloseCode.ABNORMAL_CLOSURE,
    }
)


def close_code(exc: ConnectionClosed) -> int:
    if exc.rcvd is not None:
        return exc.rcvd.code
    if exc.sent is not None:
        return exc.sent.code
    # TCP dropped without a closing handshake
    return CloseCode.ABNORMAL_CLOSURE


def is_expected_close(exc: BaseException) -> bool:
    if isinstance(exc, ConnectionClosedOK):
        return True
    if isinstance(exc, ConnectionClosed):
        return close_code(exc) in EXPECTED_CLOSE_CODES
    return False
