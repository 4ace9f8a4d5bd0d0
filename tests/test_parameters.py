import json

import pytest

from privacy_scheme.errors import InvalidArgument
from privacy_scheme.parameters import save_parameters, load_parameters
from privacy_scheme.user import request_proof
from privacy_scheme.verifier import verify_proof_of_key


def test_parameters_file(tmp_path, sys_parameters, ie_keys, provisioned, epoch):
    path = tmp_path / "crypto_parameters.json"
    save_parameters(str(path), sys_parameters, ie_keys)
    assert set(json.loads(path.read_text())) == {"g1", "g2", "k0", "k1", "k2", "pk0", "pk1", "pk2"}

    loaded_parameters, loaded_keys = load_parameters(str(path))
    assert loaded_parameters.g1 == sys_parameters.g1
    assert loaded_keys.k2 == ie_keys.k2

    nonce = bytes(20)
    proof_of_key = request_proof(provisioned, nonce)
    assert verify_proof_of_key(loaded_parameters, loaded_keys, nonce, proof_of_key, epoch)


def test_missing_parameters_file(tmp_path):
    with pytest.raises(InvalidArgument):
        load_parameters(str(tmp_path / "missing.json"))


def test_malformed_parameters_file(tmp_path):
    path = tmp_path / "crypto_parameters.json"
    path.write_text(json.dumps({"g1": "00"}))
    with pytest.raises(InvalidArgument):
        load_parameters(str(path))
