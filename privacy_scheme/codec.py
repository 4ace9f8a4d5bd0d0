# codec.py
# Conversion between the secure element's fixed-width wire format and
# bplib/petlib values. Everything decoded here is validated before it is
# returned: a value that reaches the arithmetic is always on the curve and in
# the prime-order subgroup, or a canonical scalar.

from Crypto.Hash import SHA1
from petlib.bn import Bn
from bplib.bp import G1Elem

from .errors import (EncodingError, InvalidCurvePoint, InvalidScalar, InvalidKeyHat,
                     InvalidChallenge, InvalidS, InvalidSId, ResponseLengthError)
from .models import ProofOfKey
from .system import (group, order, POINT_LENGTH, SCALAR_LENGTH, EC_SIZE, EPOCH_LENGTH,
                     EPOCH_OFFSET, SHA_DIGEST_LENGTH, SHA_DIGEST_PADDING, PROOF_OF_KEY_LENGTH)

# OpenSSL point_conversion_form_t
POINT_CONVERSION_UNCOMPRESSED = 4


# --- Points ---
def encode_point(point):
    """Serialize a G1 point as 0x04 || X || Y (65 bytes)."""
    if point is None or point.isinf():
        raise EncodingError("the point at infinity has no wire encoding")
    data = point.export(POINT_CONVERSION_UNCOMPRESSED)
    if len(data) != POINT_LENGTH or data[0] != 0x04:
        raise EncodingError(f"unexpected point encoding of {len(data)} bytes")
    return data


def decode_point(data):
    """
    Deserialize and validate a G1 point.

    :param data: 65 bytes, 0x04 || X || Y.
    :return: G1Elem on the curve and in the subgroup of prime order.
    :raises InvalidCurvePoint: for anything else.
    """
    data = bytes(data)
    if len(data) != POINT_LENGTH or data[0] != 0x04:
        raise InvalidCurvePoint(f"expected {POINT_LENGTH} bytes starting with 0x04")

    try:
        point = G1Elem.from_bytes(data, group)
    except Exception as e:
        raise InvalidCurvePoint("point is not on the curve") from e

    if point.isinf() or not (point * order).isinf():
        raise InvalidCurvePoint("point is not in the prime order subgroup")
    # Coordinates must be canonical (reduced modulo the field prime).
    if point.export(POINT_CONVERSION_UNCOMPRESSED) != data:
        raise InvalidCurvePoint("non canonical point encoding")
    return point


# --- Scalars ---
def encode_scalar(value):
    """Serialize a scalar as 32 big-endian bytes."""
    if value < 0 or value >= order:
        raise EncodingError("scalar out of range")
    return value.binary().rjust(SCALAR_LENGTH, b"\x00")


def decode_scalar(data):
    """
    Deserialize a 32-byte big-endian scalar; values >= order are rejected, not reduced.
    """
    data = bytes(data)
    if len(data) != SCALAR_LENGTH:
        raise InvalidScalar(f"expected {SCALAR_LENGTH} bytes, got {len(data)}")
    value = Bn.from_binary(data)
    if value >= order:
        raise InvalidScalar("scalar is not reduced modulo the group order")
    return value


def pad_digest(digest):
    """
    Widens a SHA-1 digest to a scalar buffer.

    The 20 digest bytes go at the tail of a 32-byte buffer and the leading 12
    bytes are zero, so the value is always below the group order. A buffer that
    is already padded comes back unchanged.
    """
    digest = bytes(digest)
    if len(digest) == SHA_DIGEST_LENGTH:
        return bytes(SHA_DIGEST_PADDING) + digest
    if len(digest) == SCALAR_LENGTH and not any(digest[:SHA_DIGEST_PADDING]):
        return digest
    raise EncodingError(f"cannot pad a digest of {len(digest)} bytes")


def epoch_scalar(epoch):
    """Places the epoch bytes at EPOCH_OFFSET of a zeroed scalar buffer."""
    epoch = bytes(epoch)
    if len(epoch) != EPOCH_LENGTH:
        raise EncodingError(f"epoch must be {EPOCH_LENGTH} bytes")
    value = bytearray(EC_SIZE)
    value[EPOCH_OFFSET:EPOCH_OFFSET + EPOCH_LENGTH] = epoch
    return decode_scalar(value)


# --- Proof of key payload ---
def decode_proof_of_key(payload):
    """
    Splits key_hat(65) || e(20) || s(32) || s_id(32) and validates each field.

    The first invalid field decides the error: InvalidKeyHat, InvalidChallenge,
    InvalidS or InvalidSId.
    """
    payload = bytes(payload)
    if len(payload) != PROOF_OF_KEY_LENGTH:
        raise ResponseLengthError(f"proof of key must be {PROOF_OF_KEY_LENGTH} bytes, got {len(payload)}")
    data_length = 0

    # key_hat
    try:
        key_hat = decode_point(payload[data_length:data_length + POINT_LENGTH])
    except InvalidCurvePoint as e:
        raise InvalidKeyHat(f"key_hat: {e}") from e
    data_length += POINT_LENGTH

    # e <-- H(...), sent without its padding
    try:
        e_value = decode_scalar(pad_digest(payload[data_length:data_length + SHA_DIGEST_LENGTH]))
    except (InvalidScalar, EncodingError) as e:
        raise InvalidChallenge(f"e: {e}") from e
    data_length += SHA_DIGEST_LENGTH

    # s
    try:
        s = decode_scalar(payload[data_length:data_length + SCALAR_LENGTH])
    except InvalidScalar as e:
        raise InvalidS(f"s: {e}") from e
    data_length += SCALAR_LENGTH

    # s_id
    try:
        s_id = decode_scalar(payload[data_length:data_length + SCALAR_LENGTH])
    except InvalidScalar as e:
        raise InvalidSId(f"s_id: {e}") from e
    data_length += SCALAR_LENGTH

    # amount of data processed = amount of data received
    if data_length != len(payload):
        raise ResponseLengthError(f"proof of key is {len(payload)} bytes, consumed {data_length}")

    return ProofOfKey(key_hat, e_value, s, s_id)


def encode_proof_of_key(proof):
    """Inverse of decode_proof_of_key; e is sent as its 20 significant bytes."""
    e_bytes = encode_scalar(proof.e)
    if any(e_bytes[:SHA_DIGEST_PADDING]):
        raise EncodingError("challenge does not fit a SHA-1 digest")
    return b"".join([
        encode_point(proof.key_hat),
        e_bytes[SHA_DIGEST_PADDING:],
        encode_scalar(proof.s),
        encode_scalar(proof.s_id),
    ])


# --- Fiat-Shamir transcript ---
def challenge_digest(key_hat, t, nonce):
    """SHA-1(P(key_hat) || P(t) || nonce), the applet's challenge before padding."""
    sha = SHA1.new()
    sha.update(encode_point(key_hat))
    sha.update(encode_point(t))
    sha.update(bytes(nonce))
    return sha.digest()


def challenge_scalar(key_hat, t, nonce):
    return decode_scalar(pad_digest(challenge_digest(key_hat, t, nonce)))
