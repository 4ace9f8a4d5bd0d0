# apdu.py
# APDU commands and responses, and the channel that runs them one at a time
# against a secure element.

import logging
import threading
from collections import namedtuple
from enum import Enum

from smartcard.Exceptions import SmartcardException

from .errors import EncodingError, TransportError, CardStatusError, ResponseLengthError
from .system import MAX_APDU_LENGTH_T0, MAX_RESPONSE_LENGTH, CLA_ISO, INS_GET_RESPONSE

logger = logging.getLogger(__name__)

SW_SUCCESS = 0x9000
SW1_BYTES_AVAILABLE = 0x61


class Case(Enum):
    CASE1 = 1   # no data sent, none expected
    CASE2S = 2  # no data sent, data expected
    CASE3S = 3  # data sent, none expected
    CASE4S = 4  # data sent, data expected


class Response(namedtuple("Response", ["data", "sw1", "sw2"])):
    __slots__ = ()

    @property
    def sw(self):
        return (self.sw1 << 8) | self.sw2


def build_command(case, cla, ins, p1, p2, data=b"", le=0):
    """
    Builds a short APDU: CLA INS P1 P2 [Lc data] [Le].

    :param case: Case of the command; decides which of Lc/data/Le are present.
    :param data: command data, 1..255 bytes for CASE3S and CASE4S.
    :param le: expected response length, 1..256 for CASE2S and CASE4S (256 is sent as 0x00).
    :return: the command frame.
    """
    data = bytes(data or b"")
    for name, value in (("CLA", cla), ("INS", ins), ("P1", p1), ("P2", p2)):
        if not 0 <= value <= 0xFF:
            raise EncodingError(f"{name} does not fit in one byte: {value}")

    frame = bytearray([cla, ins, p1, p2])

    if case in (Case.CASE3S, Case.CASE4S):
        if not 1 <= len(data) <= 255:
            raise EncodingError(f"Lc must be between 1 and 255, got {len(data)}")
        frame.append(len(data))
        frame += data
    elif data:
        raise EncodingError(f"{case.name} commands carry no data")

    if case in (Case.CASE2S, Case.CASE4S):
        if not 1 <= le <= MAX_RESPONSE_LENGTH:
            raise EncodingError(f"Le must be between 1 and {MAX_RESPONSE_LENGTH}, got {le}")
        frame.append(le & 0xFF)
    elif le:
        raise EncodingError(f"{case.name} commands expect no data")

    if len(frame) > MAX_APDU_LENGTH_T0:
        raise EncodingError(f"command of {len(frame)} bytes exceeds {MAX_APDU_LENGTH_T0}")
    return bytes(frame)


def parse_response(frame):
    """Splits a response frame into data and status word."""
    frame = bytes(frame)
    if len(frame) < 2:
        raise TransportError(f"response of {len(frame)} bytes has no status word")
    return Response(frame[:-2], frame[-2], frame[-1])


class ApduChannel(object):
    """
    Runs commands against one secure element.

    Secure elements are half-duplex: one command at a time. A chained
    retrieval keeps the channel until its last frame, so nothing can be
    interleaved. Share one channel per element. Nothing is ever retried here.
    """

    def __init__(self, transport):
        self.transport = transport
        self._lock = threading.RLock()

    def transmit(self, command):
        with self._lock:
            try:
                frame = self.transport.send(command)
            except TransportError:
                raise
            except (OSError, SmartcardException) as e:
                raise TransportError(str(e)) from e
            return parse_response(frame)

    def _check(self, response):
        if response.sw == SW_SUCCESS or response.sw1 == SW1_BYTES_AVAILABLE:
            return response
        raise CardStatusError(response.sw, self.transport.describe_status(response.sw))

    def exchange(self, command):
        """Sends a command that must succeed with 0x9000; returns the response data."""
        response = self._check(self.transmit(command))
        if response.sw1 == SW1_BYTES_AVAILABLE:
            raise ResponseLengthError(f"unexpected {(response.sw2 or 256)} bytes pending")
        return response.data

    def retrieve(self, command, expected_length):
        """
        Sends a command whose answer may be left pending behind 0x61XX.

        When the element answers 0x61XX a single GET RESPONSE asking for exactly
        XX bytes is issued. The data finally received must be exactly XX bytes
        and exactly ``expected_length`` bytes.
        """
        with self._lock:
            response = self._check(self.transmit(command))
            logger.info("[!] Elapsed time (command %02X) = %s", command[1], self.transport.elapsed_time)

            if response.sw1 == SW1_BYTES_AVAILABLE:
                if response.data:
                    raise ResponseLengthError("data returned together with 0x61XX")
                pending = response.sw2 or 256
                get_response = build_command(Case.CASE2S, CLA_ISO, INS_GET_RESPONSE, 0x00, 0x00, le=pending)
                response = self._check(self.transmit(get_response))
                logger.info("[!] Elapsed time (get response) = %s", self.transport.elapsed_time)
                if response.sw != SW_SUCCESS:
                    raise ResponseLengthError(f"more than the {pending} declared bytes are pending")
                if len(response.data) != pending:
                    raise ResponseLengthError(f"declared {pending} bytes, received {len(response.data)}")

            if len(response.data) != expected_length:
                raise ResponseLengthError(f"expected {expected_length} bytes, received {len(response.data)}")
            return response.data
