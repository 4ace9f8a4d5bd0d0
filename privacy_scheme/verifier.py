# verifier.py
# Verifier side: nonce generation and verification of a proof of key.
# Verification reads the system parameters and issuer keys and never changes
# them, so it can run concurrently for independent proofs.

import logging

from Crypto.Random import get_random_bytes

from .codec import epoch_scalar, challenge_scalar
from .errors import (InvalidArgument, InvalidCommitment, InvalidChallenge, InvalidKeyHat, InvalidScalar,
                     ProofRejected)
from .system import NONCE_LENGTH, generate_epoch

logger = logging.getLogger(__name__)


def generate_nonce(nonce_length=NONCE_LENGTH):
    """Generates a fresh nonce for one proof of key."""
    if nonce_length != NONCE_LENGTH:
        raise InvalidArgument(f"nonce must be {NONCE_LENGTH} bytes")
    return get_random_bytes(nonce_length)


def recompute_commitment(sys_parameters, ie_keys, proof_of_key, epoch):
    """
    t' = g1*s + key_hat*(-e*k0) + key_hat*(k1*s_id) + key_hat*(-e*k2*epoch)

    The three key_hat terms are added in that order.
    """
    order = sys_parameters.order
    key_hat = proof_of_key.key_hat
    e = proof_of_key.e

    t_prime = sys_parameters.g1 * proof_of_key.s

    mul_result = (-e.mod_mul(ie_keys.k0, order)).mod(order)
    t_prime = t_prime + key_hat * mul_result

    mul_result = ie_keys.k1.mod_mul(proof_of_key.s_id, order)
    t_prime = t_prime + key_hat * mul_result

    mul_result = e.mod_mul(ie_keys.k2, order).mod_mul(epoch, order)
    mul_result = (-mul_result).mod(order)
    t_prime = t_prime + key_hat * mul_result

    return t_prime


def verify_proof_of_key(sys_parameters, ie_keys, nonce, proof_of_key, epoch=None, now=None):
    """
    Verifies the proof of key of the user keys.

    :param sys_parameters: SystemParameters.
    :param ie_keys: IssuerKeys; k0, k1 and k2 enter the equation.
    :param nonce: the nonce sent to the user.
    :param proof_of_key: ProofOfKey returned by the secure element.
    :param epoch: epoch bytes; derived from ``now`` (or the clock) when omitted.
    :return: True; every failure raises.
    :raises InvalidCommitment: t' is not a usable group element.
    :raises InvalidChallenge: the recomputed challenge is not a scalar.
    :raises ProofRejected: the recomputed challenge differs from e.
    """
    if nonce is None or len(nonce) != NONCE_LENGTH:
        raise InvalidArgument(f"nonce must be {NONCE_LENGTH} bytes")
    if proof_of_key is None:
        raise InvalidArgument("no proof of key to verify")
    if proof_of_key.key_hat.isinf():
        raise InvalidKeyHat("key_hat is the point at infinity")

    if epoch is None:
        epoch = generate_epoch(now)
    ep = epoch_scalar(epoch)

    t_prime = recompute_commitment(sys_parameters, ie_keys, proof_of_key, ep)
    if t_prime.isinf():
        raise InvalidCommitment("t' is the point at infinity")

    logger.debug("key_hat: %s", proof_of_key.key_hat)
    logger.debug("t: %s", t_prime)

    # e <-- H(...)
    try:
        e = challenge_scalar(proof_of_key.key_hat, t_prime, nonce)
    except InvalidScalar as exc:
        raise InvalidChallenge(f"recomputed challenge: {exc}") from exc

    logger.debug("e: %s", e)

    if e != proof_of_key.e:
        raise ProofRejected("recomputed challenge does not match the proof")
    return True
