# errors.py
# Failure kinds raised by the provisioning, proof retrieval and verification steps.


class PrivacySchemeError(Exception):
    """Base class for every failure of the scheme."""


class InvalidArgument(PrivacySchemeError):
    """Missing or malformed caller input."""


class EncodingError(PrivacySchemeError):
    """A command or a wire value could not be built."""


class TransportError(PrivacySchemeError):
    """The channel to the secure element failed (timeouts included)."""


class CardStatusError(PrivacySchemeError):
    """The secure element answered with a non-success status word."""

    def __init__(self, sw, message):
        super().__init__(f"{message} (SW={sw:04X})")
        self.sw = sw


class ResponseLengthError(PrivacySchemeError):
    """The amount of data received differs from the amount declared."""


class ValidationError(PrivacySchemeError):
    """A decoded or recomputed value is not a valid group/field element."""


class InvalidCurvePoint(ValidationError):
    pass


class InvalidScalar(ValidationError):
    pass


# --- proof fields ---
class InvalidKeyHat(InvalidCurvePoint):
    pass


class InvalidChallenge(InvalidScalar):
    pass


class InvalidS(InvalidScalar):
    pass


class InvalidSId(InvalidScalar):
    pass


class InvalidCommitment(ValidationError):
    """The recomputed commitment t' is not a usable group element."""


class ProofRejected(PrivacySchemeError):
    """The recomputed challenge does not match the one in the proof."""
