from datetime import datetime, timezone

import pytest

from privacy_scheme.apdu import ApduChannel
from privacy_scheme.issuer import issuer_key_gen, issuer_sign_user_key
from privacy_scheme.models import UserIdentifier
from privacy_scheme.software_card import SoftwareCard
from privacy_scheme.system import setup, generate_epoch
from privacy_scheme.transport import Transport
from privacy_scheme.user import set_identifier_and_signature

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


class ScriptedTransport(Transport):
    """Answers with canned response frames and records every command."""

    def __init__(self, responses):
        super().__init__()
        self.responses = list(responses)
        self.commands = []

    def _transmit(self, command):
        self.commands.append(command)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class TamperingTransport(Transport):
    """Lets a callback rewrite every response frame of a wrapped transport."""

    def __init__(self, inner, tamper):
        super().__init__()
        self.inner = inner
        self.tamper = tamper

    def _transmit(self, command):
        return self.tamper(command, self.inner.send(command))


@pytest.fixture(scope="session")
def sys_parameters():
    return setup()


@pytest.fixture(scope="session")
def ie_keys(sys_parameters):
    return issuer_key_gen(sys_parameters)


@pytest.fixture
def epoch():
    return generate_epoch(NOW)


@pytest.fixture
def identifier():
    return UserIdentifier(bytes(range(1, 33)))


@pytest.fixture
def ie_signature(sys_parameters, ie_keys, identifier, epoch):
    return issuer_sign_user_key(sys_parameters, ie_keys, identifier, epoch)


@pytest.fixture
def card(sys_parameters):
    return SoftwareCard(sys_parameters)


@pytest.fixture
def channel(card):
    return ApduChannel(card)


@pytest.fixture
def provisioned(channel, identifier, ie_signature):
    set_identifier_and_signature(channel, identifier, ie_signature)
    return channel
