# parameters.py
# System parameters and issuer keys kept in a JSON file, group elements and
# scalars stored as hex strings.

import json
import logging

from petlib.bn import Bn
from petlib.pack import encode, decode

from .errors import InvalidArgument
from .models import IssuerKeys
from .system import group, SystemParameters

logger = logging.getLogger(__name__)

PARAMETERS_FILE_PATH = "crypto_parameters.json"


# Serialization and Deserialization
def group_element_to_hex(element):
    """Serialize a group element and convert it to a hex string."""
    return encode(element).hex()


def hex_to_group_element(hex_str):
    """Deserialize a group element from a hex string."""
    return decode(bytes.fromhex(hex_str))


def read_json_file(file_path):
    """Reads and parses a JSON file."""
    try:
        with open(file_path, "r") as file:
            return json.load(file)
    except FileNotFoundError as e:
        raise InvalidArgument(f"File not found at {file_path}") from e
    except json.JSONDecodeError as e:
        raise InvalidArgument(f"Failed to parse JSON file at {file_path}: {e}") from e


def save_values(file_path, values):
    """Save values to a JSON file."""
    with open(file_path, "w") as file:
        json.dump(values, file, indent=4)


def parameters_to_dict(sys_parameters, ie_keys):
    return {
        "g1": group_element_to_hex(sys_parameters.g1),
        "g2": group_element_to_hex(sys_parameters.g2),
        "k0": ie_keys.k0.hex(),
        "k1": ie_keys.k1.hex(),
        "k2": ie_keys.k2.hex(),
        "pk0": group_element_to_hex(ie_keys.pk0),
        "pk1": group_element_to_hex(ie_keys.pk1),
        "pk2": group_element_to_hex(ie_keys.pk2),
    }


def parameters_from_dict(values):
    try:
        sys_parameters = SystemParameters(group, hex_to_group_element(values["g1"]),
                                          hex_to_group_element(values["g2"]))
        ie_keys = IssuerKeys(
            Bn.from_hex(values["k0"]),
            Bn.from_hex(values["k1"]),
            Bn.from_hex(values["k2"]),
            hex_to_group_element(values["pk0"]),
            hex_to_group_element(values["pk1"]),
            hex_to_group_element(values["pk2"]),
        )
    except (KeyError, ValueError) as e:
        raise InvalidArgument(f"Malformed parameters: {e}") from e
    return sys_parameters, ie_keys


def save_parameters(file_path, sys_parameters, ie_keys):
    save_values(file_path, parameters_to_dict(sys_parameters, ie_keys))
    logger.info("Parameters written to %s", file_path)


def load_parameters(file_path=PARAMETERS_FILE_PATH):
    """
    Loads the system parameters and the issuer keys.

    :return: (SystemParameters, IssuerKeys)
    """
    return parameters_from_dict(read_json_file(file_path))
