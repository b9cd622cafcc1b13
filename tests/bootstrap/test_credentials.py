import itertools

import pytest

from dbentry.bootstrap.credentials import (
    check_credentials,
    check_restart_credentials,
    gen_password,
    resolve_root_password,
)
from dbentry.config.models import Credentials
from dbentry.errors import ConfigurationError


def test_fails_when_no_strategy_is_set():
    with pytest.raises(ConfigurationError) as ei:
        check_credentials(Credentials(database="app", user="u", password="p"))
    assert "MYSQL_ROOT_PASSWORD" in str(ei.value)


@pytest.mark.parametrize(
    "root_password,allow_empty,random",
    [
        combo
        for combo in itertools.product([None, "pw"], [False, True], [False, True])
        if combo != (None, False, False)
    ],
)
def test_any_single_strategy_is_enough(root_password, allow_empty, random):
    check_credentials(
        Credentials(
            root_password=root_password,
            allow_empty_password=allow_empty,
            random_root_password=random,
        )
    )


def test_empty_string_password_does_not_count():
    with pytest.raises(ConfigurationError):
        check_credentials(Credentials(root_password=""))


def test_resolve_root_password():
    assert resolve_root_password(Credentials(root_password="pw")) == ("pw", False)
    assert resolve_root_password(Credentials(allow_empty_password=True)) == ("", False)
    assert resolve_root_password(
        Credentials(root_password="pw", random_root_password=True),
        generator=lambda: "generated",
    ) == ("generated", True)


def test_generated_passwords_are_alphanumeric_and_distinct():
    a, b = gen_password(), gen_password()
    assert len(a) == 32
    assert a.isalnum()
    assert a != b


@pytest.mark.parametrize(
    "creds,needle",
    [
        (Credentials(random_root_password=True), "generated at first boot"),
        (Credentials(root_password="pw", random_root_password=True), "generated at first boot"),
        (Credentials(root_password="pw", onetime_password=True), "expired at first boot"),
        (Credentials(), "MYSQL_ROOT_PASSWORD is not set"),
    ],
)
def test_restart_needs_a_usable_root_login(creds, needle):
    with pytest.raises(ConfigurationError, match=needle):
        check_restart_credentials(creds)


def test_restart_with_known_root_login():
    check_restart_credentials(Credentials(root_password="pw"))
    check_restart_credentials(Credentials(allow_empty_password=True))
