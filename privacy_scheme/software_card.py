# software_card.py
# Software stand-in for the secure element applet. It speaks the same APDUs,
# status words and byte layouts as the card, so the host code cannot tell the
# difference. It keeps its secrets in memory and is meant for tests and demos.

import logging

from .codec import (decode_point, encode_proof_of_key, challenge_digest,
                    pad_digest, decode_scalar)
from .errors import InvalidCurvePoint
from .issuer import identifier_scalar
from .models import IssuerSignature, ProofOfKey
from .system import (order, POINT_LENGTH, USER_MAX_ID_LENGTH, NONCE_LENGTH, MAX_RESPONSE_LENGTH,
                     CLA_APPLICATION, CLA_ISO, INS_SET_USER_IDENTIFIER_ISSUER_SIGNATURE,
                     INS_GET_USER_IDENTIFIER, INS_COMPUTE_PROOF_OF_KEY, INS_GET_RESPONSE,
                     DEFAULT_USER_IDENTIFIER, setup)
from .transport import Transport

logger = logging.getLogger(__name__)

SW_SUCCESS = b"\x90\x00"
SW_WRONG_LENGTH = b"\x67\x00"
SW_CONDITIONS_NOT_SATISFIED = b"\x69\x85"
SW_WRONG_DATA = b"\x6A\x80"
SW_WRONG_P1P2 = b"\x6B\x00"
SW_INS_NOT_SUPPORTED = b"\x6D\x00"
SW_CLA_NOT_SUPPORTED = b"\x6E\x00"


def _sw(value):
    return bytes([value >> 8, value & 0xFF])


class SoftwareCard(Transport):
    """
    In-memory secure element.

    :param sys_parameters: SystemParameters; defaults to the standard generators.
    :param random_scalar: callable returning a random scalar, for reproducible proofs.
    :param response_limit: largest data block returned in one frame.
    """

    def __init__(self, sys_parameters=None, random_scalar=None, response_limit=MAX_RESPONSE_LENGTH):
        super().__init__()
        self.sys_parameters = sys_parameters or setup()
        self.random_scalar = random_scalar or order.random
        self.response_limit = response_limit
        self.identifier = DEFAULT_USER_IDENTIFIER
        self.signature = None
        self.pending = b""
        self.commands = []

    def _transmit(self, command):
        self.commands.append(command)
        if len(command) < 4:
            return SW_WRONG_LENGTH
        cla, ins, p1, p2 = command[:4]
        body = command[4:]

        if ins == INS_GET_RESPONSE:
            if cla != CLA_ISO:
                return SW_CLA_NOT_SUPPORTED
            return self._get_response(body)

        # Any other command discards data nobody collected.
        self.pending = b""
        if cla != CLA_APPLICATION:
            return SW_CLA_NOT_SUPPORTED
        if p1 != 0x00 or p2 != 0x00:
            return SW_WRONG_P1P2

        if ins == INS_SET_USER_IDENTIFIER_ISSUER_SIGNATURE:
            return self._set_identifier_and_signature(body)
        if ins == INS_GET_USER_IDENTIFIER:
            return self._get_identifier(body)
        if ins == INS_COMPUTE_PROOF_OF_KEY:
            return self._compute_proof_of_key(body)
        return SW_INS_NOT_SUPPORTED

    # --- Commands ---
    def _set_identifier_and_signature(self, body):
        expected = USER_MAX_ID_LENGTH + 2 * POINT_LENGTH
        if len(body) < 1 or body[0] != expected or len(body) != 1 + expected:
            return SW_WRONG_LENGTH
        data = body[1:]
        identifier = data[:USER_MAX_ID_LENGTH]
        try:
            user_key = decode_point(data[USER_MAX_ID_LENGTH:USER_MAX_ID_LENGTH + POINT_LENGTH])
            user_key_prime = decode_point(data[USER_MAX_ID_LENGTH + POINT_LENGTH:])
        except InvalidCurvePoint:
            return SW_WRONG_DATA
        self.identifier = bytes(identifier)
        self.signature = IssuerSignature(user_key, user_key_prime)
        logger.debug("Provisioned identifier %s", self.identifier.hex())
        return SW_SUCCESS

    def _get_identifier(self, body):
        if len(body) != 1:
            return SW_WRONG_LENGTH
        le = body[0] or 256
        if le != USER_MAX_ID_LENGTH:
            return _sw(0x6C00 | USER_MAX_ID_LENGTH)
        return self.identifier + SW_SUCCESS

    def _compute_proof_of_key(self, body):
        if len(body) != 1 + NONCE_LENGTH + 1 or body[0] != NONCE_LENGTH:
            return SW_WRONG_LENGTH
        if self.signature is None:
            return SW_CONDITIONS_NOT_SATISFIED
        nonce = body[1:1 + NONCE_LENGTH]
        self.pending = encode_proof_of_key(self.compute_proof_of_key(nonce))
        # T=0: the answer of a case 4 command is always collected with GET RESPONSE.
        return self._bytes_available()

    def _get_response(self, body):
        if not self.pending:
            return SW_CONDITIONS_NOT_SATISFIED
        if len(body) != 1:
            return SW_WRONG_LENGTH
        le = body[0] or 256
        chunk, self.pending = self.pending[:le], self.pending[le:]
        if self.pending:
            return chunk + self._bytes_available()
        return chunk + SW_SUCCESS

    def _bytes_available(self):
        return bytes([0x61, min(len(self.pending), self.response_limit) & 0xFF])

    # --- Proof of key ---
    def compute_proof_of_key(self, nonce):
        """
        Proves knowledge of the signed key for the stored identifier.

        key_hat = user_key*rho, t = g1*rho_r + user_key_prime*(rho*rho_m),
        e = H(key_hat, t, nonce), s = rho_r + e*rho, s_id = rho_m - e*m.
        """
        g1 = self.sys_parameters.g1
        m = identifier_scalar(self.identifier, order)

        rho = self._nonzero_random()
        rho_r = self.random_scalar()
        rho_m = self.random_scalar()

        key_hat = self.signature.user_key * rho
        t = g1 * rho_r + self.signature.user_key_prime * rho.mod_mul(rho_m, order)

        e = decode_scalar(pad_digest(challenge_digest(key_hat, t, nonce)))
        s = rho_r.mod_add(e.mod_mul(rho, order), order)
        s_id = rho_m.mod_sub(e.mod_mul(m, order), order)
        return ProofOfKey(key_hat, e, s, s_id)

    def _nonzero_random(self):
        while True:
            value = self.random_scalar()
            if value != 0:
                return value
