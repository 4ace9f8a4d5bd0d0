# user.py
# Host side of the user: drives the secure element through provisioning and
# proof of key retrieval. All the cryptography happens on the element; the
# host only frames commands and checks what comes back.

import logging

from .apdu import Case, build_command
from .codec import encode_point, decode_proof_of_key
from .errors import InvalidArgument
from .models import IssuerSignature
from .system import (USER_MAX_ID_LENGTH, NONCE_LENGTH, PROOF_OF_KEY_LENGTH, CLA_APPLICATION,
                     INS_SET_USER_IDENTIFIER_ISSUER_SIGNATURE, INS_GET_USER_IDENTIFIER,
                     INS_COMPUTE_PROOF_OF_KEY)

logger = logging.getLogger(__name__)


def get_identifier(channel, identifier):
    """
    Gets the user identifier stored on the secure element.

    :param channel: ApduChannel of the secure element.
    :param identifier: UserIdentifier to fill in.
    :return: the same UserIdentifier.
    """
    if identifier is None:
        raise InvalidArgument("no destination for the user identifier")

    command = build_command(Case.CASE2S, CLA_APPLICATION, INS_GET_USER_IDENTIFIER, 0x00, 0x00,
                            le=USER_MAX_ID_LENGTH)
    data = channel.retrieve(command, USER_MAX_ID_LENGTH)

    identifier.buffer[:] = data
    return identifier


def set_identifier_and_signature(channel, identifier, ie_signature):
    """
    Sets the user identifier and the issuer signature of the user's keys in one command.

    Not retried on failure: the element's state is then unknown and the caller
    has to re-provision or give up.

    :param channel: ApduChannel of the secure element.
    :param identifier: UserIdentifier (32 bytes).
    :param ie_signature: IssuerSignature.
    """
    if identifier is None or not isinstance(ie_signature, IssuerSignature):
        raise InvalidArgument("identifier and issuer signature are required")
    buffer = bytes(identifier)
    if len(buffer) != USER_MAX_ID_LENGTH:
        raise InvalidArgument(f"user identifier must be {USER_MAX_ID_LENGTH} bytes, got {len(buffer)}")

    # identifier || user_key || user_key_prime
    data = b"".join([
        buffer,
        encode_point(ie_signature.user_key),
        encode_point(ie_signature.user_key_prime),
    ])

    command = build_command(Case.CASE3S, CLA_APPLICATION, INS_SET_USER_IDENTIFIER_ISSUER_SIGNATURE,
                            0x00, 0x00, data)
    channel.exchange(command)
    logger.info("Identifier and issuer signature stored on the secure element")


def request_proof(channel, nonce):
    """
    Has the secure element compute a proof of key over the verifier's nonce.

    :param channel: ApduChannel of the secure element.
    :param nonce: NONCE_LENGTH bytes from the verifier.
    :return: ProofOfKey with every field validated.
    """
    if nonce is None or len(nonce) != NONCE_LENGTH:
        raise InvalidArgument(f"nonce must be {NONCE_LENGTH} bytes")

    command = build_command(Case.CASE4S, CLA_APPLICATION, INS_COMPUTE_PROOF_OF_KEY, 0x00, 0x00,
                            bytes(nonce), le=PROOF_OF_KEY_LENGTH)
    payload = channel.retrieve(command, PROOF_OF_KEY_LENGTH)
    return decode_proof_of_key(payload)
