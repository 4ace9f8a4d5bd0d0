# __main__.py
# Command line driver: issuer setup, provisioning of a secure element and a
# full nonce -> proof -> verification round.

import argparse
import logging
import sys

from .apdu import ApduChannel
from .errors import PrivacySchemeError
from .issuer import issuer_key_gen, issuer_sign_user_key, verify_issuer_signature
from .models import UserIdentifier
from .parameters import PARAMETERS_FILE_PATH, save_parameters, load_parameters
from .software_card import SoftwareCard
from .system import setup, generate_epoch, USER_MAX_ID_LENGTH, DEFAULT_USER_IDENTIFIER
from .transport import PcscTransport
from .user import get_identifier, set_identifier_and_signature, request_proof
from .verifier import generate_nonce, verify_proof_of_key

log = logging.getLogger("privacy_scheme")


def open_transport(args, sys_parameters=None):
    if args.simulate:
        if args.command != "demo":
            # an in-memory element does not outlive the process
            raise SystemExit("--simulate is only available with the demo command")
        return SoftwareCard(sys_parameters)
    if not args.reader:
        raise SystemExit("either --reader or --simulate is required")
    aid = bytes.fromhex(args.aid) if args.aid else None
    return PcscTransport(args.reader, aid)


def parse_identifier(hex_str):
    buffer = bytes.fromhex(hex_str)
    if len(buffer) != USER_MAX_ID_LENGTH:
        raise argparse.ArgumentTypeError(f"identifier must be {USER_MAX_ID_LENGTH} bytes")
    return UserIdentifier(buffer)


def provision(channel, sys_parameters, ie_keys, identifier):
    epoch = generate_epoch()
    ie_signature = issuer_sign_user_key(sys_parameters, ie_keys, identifier, epoch)
    if not verify_issuer_signature(sys_parameters, ie_keys, identifier, ie_signature, epoch):
        raise PrivacySchemeError("issuer signature does not verify")
    set_identifier_and_signature(channel, identifier, ie_signature)
    print(f"Provisioned identifier {bytes(identifier).hex()} for epoch {epoch.hex()}")


def prove_and_verify(channel, sys_parameters, ie_keys):
    nonce = generate_nonce()
    proof_of_key = request_proof(channel, nonce)
    verify_proof_of_key(sys_parameters, ie_keys, nonce, proof_of_key)
    print("✅ The proof of key is VALID.")


def cmd_setup(args):
    sys_parameters = setup()
    ie_keys = issuer_key_gen(sys_parameters)
    save_parameters(args.parameters, sys_parameters, ie_keys)
    print(f"Issuer keys written to {args.parameters}")


def cmd_provision(args):
    sys_parameters, ie_keys = load_parameters(args.parameters)
    with open_transport(args, sys_parameters) as transport:
        channel = ApduChannel(transport)
        provision(channel, sys_parameters, ie_keys, args.identifier)


def cmd_verify(args):
    sys_parameters, ie_keys = load_parameters(args.parameters)
    with open_transport(args, sys_parameters) as transport:
        channel = ApduChannel(transport)
        identifier = get_identifier(channel, UserIdentifier())
        log.info("User identifier: %s", bytes(identifier).hex())
        prove_and_verify(channel, sys_parameters, ie_keys)


def cmd_demo(args):
    sys_parameters = setup()
    ie_keys = issuer_key_gen(sys_parameters)
    with open_transport(args, sys_parameters) as transport:
        channel = ApduChannel(transport)
        provision(channel, sys_parameters, ie_keys, args.identifier)
        prove_and_verify(channel, sys_parameters, ie_keys)


def main(argv=None):
    ap = argparse.ArgumentParser(prog="privacy_scheme", description="Epoch-bound proof of key over a secure element")
    ap.add_argument("--parameters", default=PARAMETERS_FILE_PATH, help="JSON file with system parameters and issuer keys")
    ap.add_argument("--reader", help="PC/SC reader substring to select")
    ap.add_argument("--aid", help="applet AID (hex) to select after connecting")
    ap.add_argument("--simulate", action="store_true", help="use the software secure element")
    ap.add_argument("--log", default="warning", choices=["debug", "info", "warning", "error"])
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("setup", help="generate issuer keys").set_defaults(func=cmd_setup)

    p = sub.add_parser("provision", help="store identifier and issuer signature on the element")
    p.add_argument("identifier", type=parse_identifier, help="32-byte identifier in hex")
    p.set_defaults(func=cmd_provision)

    sub.add_parser("verify", help="request a proof of key and verify it").set_defaults(func=cmd_verify)

    p = sub.add_parser("demo", help="setup, provision and verify in one run")
    p.add_argument("--identifier", type=parse_identifier,
                   default=UserIdentifier(DEFAULT_USER_IDENTIFIER))
    p.set_defaults(func=cmd_demo)

    args = ap.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log.upper()))

    try:
        args.func(args)
    except PrivacySchemeError as e:
        print(f"❌ {type(e).__name__}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
