# models.py
# Values exchanged between issuer, user (secure element) and verifier.

from dataclasses import dataclass, field

from petlib.bn import Bn
from bplib.bp import G1Elem, G2Elem

from .system import USER_MAX_ID_LENGTH


@dataclass
class UserIdentifier:
    """Fixed 32-byte identifier of a credential instance."""
    buffer: bytearray = field(default_factory=lambda: bytearray(USER_MAX_ID_LENGTH))

    def __post_init__(self):
        self.buffer = bytearray(self.buffer)

    @property
    def buffer_length(self) -> int:
        return len(self.buffer)

    def __bytes__(self):
        return bytes(self.buffer)


@dataclass(frozen=True)
class IssuerKeys:
    """Issuer secret scalars k0, k1, k2 and their G2 public counterparts."""
    k0: Bn
    k1: Bn
    k2: Bn
    pk0: G2Elem
    pk1: G2Elem
    pk2: G2Elem

    def public(self):
        return self.pk0, self.pk1, self.pk2


@dataclass(frozen=True)
class IssuerSignature:
    user_key: G1Elem
    user_key_prime: G1Elem


@dataclass(frozen=True)
class ProofOfKey:
    key_hat: G1Elem
    e: Bn
    s: Bn
    s_id: Bn
