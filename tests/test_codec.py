import pytest
from petlib.bn import Bn

from privacy_scheme.codec import (encode_point, decode_point, encode_scalar, decode_scalar, pad_digest,
                                  epoch_scalar, decode_proof_of_key, encode_proof_of_key)
from privacy_scheme.errors import (EncodingError, InvalidCurvePoint, InvalidScalar, InvalidKeyHat,
                                   InvalidS, InvalidSId, ResponseLengthError)
from privacy_scheme.models import ProofOfKey
from privacy_scheme.system import group, order, POINT_LENGTH, SCALAR_LENGTH, PROOF_OF_KEY_LENGTH


def test_point_wire_format(sys_parameters):
    point = sys_parameters.g1 * Bn(5)
    data = encode_point(point)
    assert len(data) == POINT_LENGTH
    assert data[0] == 0x04
    assert decode_point(data) == point


def test_point_at_infinity_has_no_encoding():
    from bplib.bp import G1Elem
    with pytest.raises(EncodingError):
        encode_point(G1Elem.inf(group))


def test_point_off_curve(sys_parameters):
    data = bytearray(encode_point(sys_parameters.g1 * Bn(5)))
    data[-1] ^= 0x01
    with pytest.raises(InvalidCurvePoint):
        decode_point(bytes(data))


@pytest.mark.parametrize("data", [
    b"",
    bytes(POINT_LENGTH),
    b"\x04" + bytes(POINT_LENGTH - 1),
    b"\x04" + b"\xff" * (POINT_LENGTH - 1),
])
def test_point_garbage(data):
    with pytest.raises(InvalidCurvePoint):
        decode_point(data)


def test_point_compressed_form_rejected(sys_parameters):
    data = encode_point(sys_parameters.g1 * Bn(5))
    with pytest.raises(InvalidCurvePoint):
        decode_point(b"\x02" + data[1:33])


def test_scalar_wire_format():
    value = Bn(0x1234)
    data = encode_scalar(value)
    assert data == bytes(SCALAR_LENGTH - 2) + b"\x12\x34"
    assert decode_scalar(data) == value


def test_scalar_not_reduced():
    with pytest.raises(InvalidScalar):
        decode_scalar(order.binary().rjust(SCALAR_LENGTH, b"\x00"))
    with pytest.raises(InvalidScalar):
        decode_scalar(b"\xff" * SCALAR_LENGTH)


def test_scalar_wrong_width():
    with pytest.raises(InvalidScalar):
        decode_scalar(bytes(SCALAR_LENGTH - 1))
    with pytest.raises(EncodingError):
        encode_scalar(order)


def test_pad_digest():
    digest = bytes(range(100, 120))
    padded = pad_digest(digest)
    assert padded == bytes(12) + digest
    assert pad_digest(digest) == padded
    assert pad_digest(padded) == padded
    assert decode_scalar(padded) == Bn.from_binary(digest)


def test_pad_digest_of_all_ones_is_a_valid_scalar():
    assert decode_scalar(pad_digest(b"\xff" * 20)) < order


@pytest.mark.parametrize("digest", [b"", bytes(19), bytes(21), b"\x01" + bytes(31)])
def test_pad_digest_wrong_width(digest):
    with pytest.raises(EncodingError):
        pad_digest(digest)


def test_epoch_scalar():
    assert epoch_scalar(b"\x13\x0a\x07\xea") == Bn(0x130a07ea)
    with pytest.raises(EncodingError):
        epoch_scalar(b"\x13\x0a\x07")


@pytest.fixture
def proof(sys_parameters):
    return ProofOfKey(sys_parameters.g1 * Bn(3), Bn(0xabcdef), Bn(11), Bn(12))


def test_proof_of_key_layout(proof):
    payload = encode_proof_of_key(proof)
    assert len(payload) == PROOF_OF_KEY_LENGTH
    assert payload[POINT_LENGTH:POINT_LENGTH + 20] == bytes(17) + b"\xab\xcd\xef"
    decoded = decode_proof_of_key(payload)
    assert decoded == proof


def test_proof_of_key_invalid_fields(proof):
    payload = encode_proof_of_key(proof)

    with pytest.raises(InvalidKeyHat):
        decode_proof_of_key(b"\x05" + payload[1:])

    s_offset = POINT_LENGTH + 20
    with pytest.raises(InvalidS):
        decode_proof_of_key(payload[:s_offset] + b"\xff" * 32 + payload[s_offset + 32:])

    with pytest.raises(InvalidSId):
        decode_proof_of_key(payload[:-32] + b"\xff" * 32)

    # key_hat is checked first
    with pytest.raises(InvalidKeyHat):
        decode_proof_of_key(bytes(POINT_LENGTH) + payload[POINT_LENGTH:-32] + b"\xff" * 32)


def test_proof_of_key_length(proof):
    payload = encode_proof_of_key(proof)
    with pytest.raises(ResponseLengthError):
        decode_proof_of_key(payload[:-1])
    with pytest.raises(ResponseLengthError):
        decode_proof_of_key(payload + b"\x00")
