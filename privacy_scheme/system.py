# system.py
# Pairing group, fixed protocol widths and the epoch shared by every role.

from datetime import datetime, timezone

from bplib.bp import BpGroup

# Initialize pairing group (BN254 in bplib)
group = BpGroup()
order = group.order()  # Prime order of G1, G2 and GT


# --- Wire widths (must match the applet) ---
EC_SIZE = 32                      # one coordinate / one scalar
POINT_LENGTH = 1 + 2 * EC_SIZE    # 0x04 || X || Y
SCALAR_LENGTH = EC_SIZE
USER_MAX_ID_LENGTH = 32
NONCE_LENGTH = 20

# The applet hashes with SHA-1: 20 bytes, 12 short of a scalar.
SHA_DIGEST_LENGTH = 20
SHA_DIGEST_PADDING = SCALAR_LENGTH - SHA_DIGEST_LENGTH

# key_hat || e || s || s_id
PROOF_OF_KEY_LENGTH = POINT_LENGTH + SHA_DIGEST_LENGTH + SCALAR_LENGTH + SCALAR_LENGTH

EPOCH_LENGTH = 4
EPOCH_OFFSET = EC_SIZE - EPOCH_LENGTH


# --- APDU ---
MAX_APDU_LENGTH_T0 = 261  # header(4) + Lc(1) + 255 data + Le(1)
MAX_RESPONSE_LENGTH = 256

CLA_APPLICATION = 0x80
CLA_ISO = 0x00

INS_SET_USER_IDENTIFIER_ISSUER_SIGNATURE = 0x01
INS_GET_USER_IDENTIFIER = 0x02
INS_COMPUTE_PROOF_OF_KEY = 0x03
INS_GET_RESPONSE = 0xC0

# Identifier reported by a card nobody has provisioned yet.
DEFAULT_USER_IDENTIFIER = bytes([0x10]) + bytes(USER_MAX_ID_LENGTH - 1)


class SystemParameters(object):
    """Public parameters shared by issuer, user and verifier."""

    def __init__(self, group, g1, g2):
        self.group = group
        self.g1 = g1
        self.g2 = g2

    @property
    def order(self):
        return self.group.order()


def setup():
    """
    Sets up the public parameters for the scheme.

    :return: SystemParameters holding the generators of G1 and G2.
    """
    return SystemParameters(group, group.gen1(), group.gen2())


def generate_epoch(now=None):
    """
    Derives the epoch bytes from a clock: [day, month, year_hi, year_lo] in UTC.

    Prover context (the issuer signing the user key) and verifier must use the
    same derivation; there is no synchronisation beyond that.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return bytes([now.day, now.month, (now.year >> 8) & 0xFF, now.year & 0xFF])
