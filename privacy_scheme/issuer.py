# issuer.py
# Issuer side: key generation and the signature over a user's key material.

import logging

from petlib.bn import Bn

from .codec import epoch_scalar
from .errors import InvalidArgument
from .models import IssuerKeys, IssuerSignature
from .system import USER_MAX_ID_LENGTH, generate_epoch

logger = logging.getLogger(__name__)


def identifier_scalar(identifier, order):
    """Maps the 32-byte user identifier to a scalar."""
    buffer = bytes(identifier)
    if len(buffer) != USER_MAX_ID_LENGTH:
        raise InvalidArgument(f"user identifier must be {USER_MAX_ID_LENGTH} bytes")
    return Bn.from_binary(buffer).mod(order)


# --- Issuer Key Generation ---
def issuer_key_gen(sys_parameters):
    """
    Generates the issuer keys k0, k1, k2 and their public keys in G2.

    :param sys_parameters: SystemParameters.
    :return: IssuerKeys.
    """
    order = sys_parameters.order
    k = [_nonzero_random(order) for _ in range(3)]
    pk = [sys_parameters.g2 * k_i for k_i in k]
    return IssuerKeys(k[0], k[1], k[2], pk[0], pk[1], pk[2])


def _nonzero_random(order):
    while True:
        value = order.random()
        if value != 0:
            return value


# --- Signature ---
def issuer_sign_user_key(sys_parameters, ie_keys, identifier, epoch=None):
    """
    Signs the user key for one identifier and one epoch.

    user_key = g1 * (k0 + k1*m + k2*epoch)^-1 and user_key_prime = user_key * k1,
    where m is the identifier as a scalar.

    :param identifier: UserIdentifier or 32 bytes.
    :param epoch: epoch bytes; defaults to the current one.
    :return: IssuerSignature.
    """
    order = sys_parameters.order
    m = identifier_scalar(identifier, order)
    ep = epoch_scalar(epoch if epoch is not None else generate_epoch())

    exponent = ie_keys.k0.mod_add(ie_keys.k1.mod_mul(m, order), order)
    exponent = exponent.mod_add(ie_keys.k2.mod_mul(ep, order), order)
    if exponent == 0:
        raise InvalidArgument("identifier cannot be signed with these keys")

    user_key = sys_parameters.g1 * exponent.mod_inverse(order)
    user_key_prime = user_key * ie_keys.k1
    return IssuerSignature(user_key, user_key_prime)


def verify_issuer_signature(sys_parameters, ie_keys, identifier, ie_signature, epoch=None):
    """
    Checks a signature with pairings, using only the public keys.

    e(user_key, pk0 + pk1*m + pk2*epoch) == e(g1, g2)
    e(user_key_prime, g2) == e(user_key, pk1)
    """
    group = sys_parameters.group
    order = sys_parameters.order
    m = identifier_scalar(identifier, order)
    ep = epoch_scalar(epoch if epoch is not None else generate_epoch())

    if ie_signature.user_key.isinf() or ie_signature.user_key_prime.isinf():
        return False

    aggregate_pk = ie_keys.pk0 + ie_keys.pk1 * m + ie_keys.pk2 * ep
    lhs = group.pair(ie_signature.user_key, aggregate_pk)
    rhs = group.pair(sys_parameters.g1, sys_parameters.g2)
    if lhs != rhs:
        logger.debug("user_key does not match the identifier and epoch")
        return False

    return group.pair(ie_signature.user_key_prime, sys_parameters.g2) == group.pair(ie_signature.user_key, ie_keys.pk1)
