# transport.py
# Byte transport to a secure element. A transport moves one command frame to
# the element and returns the response frame (data || SW1 SW2); it knows
# nothing about the commands themselves.

import logging
import time
from abc import ABC, abstractmethod

from smartcard.System import readers
from smartcard.Exceptions import CardConnectionException, NoCardException
from smartcard.CardConnection import CardConnection

from .errors import TransportError

logger = logging.getLogger(__name__)


# ISO 7816-4 status words
STATUS_MESSAGES = {
    0x6281: "Part of returned data may be corrupted",
    0x6700: "Wrong length",
    0x6982: "Security status not satisfied",
    0x6985: "Conditions of use not satisfied",
    0x6A80: "Incorrect parameters in the data field",
    0x6A86: "Incorrect parameters P1-P2",
    0x6B00: "Wrong parameters P1-P2",
    0x6D00: "Instruction code not supported or invalid",
    0x6E00: "Class not supported",
    0x6F00: "No precise diagnosis",
}


def describe_status(sw):
    """Human readable text for a status word."""
    if sw == 0x9000:
        return "Success"
    if sw >> 8 == 0x61:
        return f"{(sw & 0xFF) or 256} bytes still available"
    if sw >> 8 == 0x6C:
        return f"Wrong Le, {(sw & 0xFF) or 256} bytes available"
    return STATUS_MESSAGES.get(sw, f"Unknown status word {sw:04X}")


class Transport(ABC):
    """
    Blocking channel to a secure element.

    ``elapsed_time`` holds the duration, in seconds, of the last exchange. It is
    only there to be reported.
    """

    def __init__(self):
        self.elapsed_time = None

    def send(self, command: bytes) -> bytes:
        start_time = time.perf_counter_ns()
        try:
            response = self._transmit(bytes(command))
        finally:
            self.elapsed_time = (time.perf_counter_ns() - start_time) / 1e9
        logger.debug("-> %s", bytes(command).hex())
        logger.debug("<- %s", response.hex())
        return response

    def describe_status(self, sw):
        return describe_status(sw)

    @abstractmethod
    def _transmit(self, command: bytes) -> bytes:
        raise NotImplementedError

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class PcscTransport(Transport):
    """
    Transport over a PC/SC reader (pyscard).

    :param reader_name: substring of the reader name to use.
    :param aid: optional applet AID selected right after connecting.
    """

    def __init__(self, reader_name, aid=None):
        super().__init__()
        reader = None
        try:
            for r in readers():
                if reader_name in str(r):
                    reader = r
                    break
        except Exception as e:
            raise TransportError(f"cannot list PC/SC readers: {e}") from e
        if reader is None:
            raise TransportError(f"Reader not found: {reader_name}")

        self.connection = reader.createConnection()
        try:
            try:
                self.connection.connect(CardConnection.T0_protocol)
            except CardConnectionException:
                self.connection.connect(CardConnection.T1_protocol)
        except (CardConnectionException, NoCardException) as e:
            raise TransportError(f"cannot connect to {reader}: {e}") from e
        logger.info("Connected to %s", reader)

        if aid is not None:
            self.select(aid)

    def select(self, aid):
        aid = bytes(aid)
        response = self.send(bytes([0x00, 0xA4, 0x04, 0x00, len(aid)]) + aid)
        sw = int.from_bytes(response[-2:], "big")
        if sw != 0x9000 and sw >> 8 != 0x61:
            raise TransportError(f"SELECT failed: {describe_status(sw)} ({sw:04X})")

    def _transmit(self, command):
        try:
            data, sw1, sw2 = self.connection.transmit(list(command))
        except CardConnectionException as e:
            raise TransportError(str(e)) from e
        return bytes(data) + bytes([sw1, sw2])

    def close(self):
        try:
            self.connection.disconnect()
        except CardConnectionException as e:
            logger.warning("Error while disconnecting: %s", e)
