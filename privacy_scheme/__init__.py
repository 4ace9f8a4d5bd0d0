"""Epoch-bound proof of key between an issuer, a secure-element backed user and a verifier."""

from .errors import (PrivacySchemeError, InvalidArgument, EncodingError, TransportError,
                     CardStatusError, ResponseLengthError, ValidationError, InvalidCurvePoint,
                     InvalidScalar, InvalidKeyHat, InvalidChallenge, InvalidS, InvalidSId,
                     InvalidCommitment, ProofRejected)
from .models import UserIdentifier, IssuerKeys, IssuerSignature, ProofOfKey
from .system import SystemParameters, setup, generate_epoch
from .apdu import ApduChannel
from .issuer import issuer_key_gen, issuer_sign_user_key, verify_issuer_signature
from .user import get_identifier, set_identifier_and_signature, request_proof
from .verifier import generate_nonce, verify_proof_of_key

__version__ = "0.1.0"
